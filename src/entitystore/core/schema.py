"""
Schema Description - Entity Collections and Typed Attributes

📐 Explicit Entity Schemas:
A schema is a named set of entity collections. Each collection is a SQLModel
table class described by an EntitySchema: the attributes a payload may write
and a typed setter per attribute. Host applications register schemas by name
and hand that name to the persistence manager through its data source.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Type

from pydantic import TypeAdapter, ValidationError
from pydantic.errors import PydanticSchemaGenerationError
from sqlmodel import SQLModel

from .errors import AttributeValueError, SchemaNotFoundError, UnknownEntityError

logger = logging.getLogger(__name__)


def is_table_model(model: Any) -> bool:
    """Check if a class is a SQLModel table (has a mapped __table__)"""
    return (
        isinstance(model, type)
        and issubclass(model, SQLModel)
        and getattr(model, "__table__", None) is not None
    )


@dataclass(frozen=True)
class AttributeSpec:
    """A writable attribute and the adapter used to validate values for it"""
    name: str
    annotation: Any
    adapter: Optional[TypeAdapter] = field(default=None, repr=False, compare=False)

    def coerce(self, value: Any) -> Any:
        if self.adapter is None:
            return value
        return self.adapter.validate_python(value)


@lru_cache(maxsize=None)
def _model_attributes(model: Type[SQLModel]) -> Dict[str, AttributeSpec]:
    attributes: Dict[str, AttributeSpec] = {}
    for name, info in model.model_fields.items():
        try:
            adapter = TypeAdapter(info.annotation)
        except PydanticSchemaGenerationError:
            # Arbitrary column types are stored as given
            logger.debug(f"No type adapter for {model.__name__}.{name}, storing values as-is")
            adapter = None
        attributes[name] = AttributeSpec(name, info.annotation, adapter)
    return attributes


class EntitySchema:
    """
    Description of one entity collection.

    Holds the collection name, the table model backing it and a typed
    attribute spec keyed by attribute name. Payload keys that do not name an
    attribute are ignored by apply().
    """

    def __init__(self, entity_name: str, model: Type[SQLModel], attributes: Mapping[str, AttributeSpec]):
        self.entity_name = entity_name
        self.model = model
        self.attributes: Dict[str, AttributeSpec] = dict(attributes)

    @classmethod
    def from_model(cls, model: Type[SQLModel], entity_name: Optional[str] = None) -> "EntitySchema":
        if not is_table_model(model):
            raise TypeError(
                f"{getattr(model, '__name__', model)!r} is not a SQLModel table (declare it with table=True)"
            )
        return cls(entity_name or model.__name__, model, _model_attributes(model))

    def coerce(self, name: str, value: Any) -> Any:
        """
        Validate a value for one attribute.

        Raises:
            AttributeValueError: If the attribute's type rejects the value
        """
        spec = self.attributes[name]
        try:
            return spec.coerce(value)
        except ValidationError as e:
            reason = e.errors()[0]["msg"] if e.errors() else str(e)
            raise AttributeValueError(self.entity_name, name, value, reason) from e

    @property
    def attribute_names(self) -> List[str]:
        return list(self.attributes)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def new_record(self) -> SQLModel:
        """Create an empty record; attributes are filled in by apply()"""
        return self.model()

    def apply(self, record: Any, payload: Mapping[str, Any]) -> List[str]:
        """
        Write payload values onto a record.

        Every value is validated before any attribute is written, so a
        rejected value leaves the record untouched.

        Args:
            record: Instance of this entity's model
            payload: Attribute name to value mapping

        Returns:
            Names of the attributes that were written
        """
        values = {
            name: self.coerce(name, payload[name])
            for name in self.attributes
            if name in payload
        }
        for name, value in values.items():
            setattr(record, name, value)
        return list(values)

    def __repr__(self) -> str:
        return f"EntitySchema({self.entity_name}, attributes={self.attribute_names})"


class Schema:
    """A named set of entity collections opened together by one store"""

    def __init__(self, name: str, models: Iterable[Type[SQLModel]] = ()):
        if not name:
            raise ValueError("Schema name must not be empty")
        self.name = name
        self._entities: Dict[str, EntitySchema] = {}
        for model in models:
            self.add(model)

    def add(self, model: Type[SQLModel], entity_name: Optional[str] = None) -> EntitySchema:
        """Add a table model as an entity collection"""
        entity = EntitySchema.from_model(model, entity_name)
        if entity.entity_name in self._entities:
            raise ValueError(f"Entity {entity.entity_name} already defined in schema {self.name}")
        self._entities[entity.entity_name] = entity
        return entity

    def entity(self, entity_name: str) -> EntitySchema:
        try:
            return self._entities[entity_name]
        except KeyError:
            raise UnknownEntityError(f"Entity {entity_name} is not defined in schema {self.name}") from None

    def entity_for(self, model: Type[SQLModel]) -> EntitySchema:
        for entity in self._entities.values():
            if entity.model is model:
                return entity
        raise UnknownEntityError(f"Model {model.__name__} is not part of schema {self.name}")

    @property
    def entity_names(self) -> List[str]:
        return list(self._entities)

    @property
    def tables(self) -> List[Any]:
        return [entity.model.__table__ for entity in self._entities.values()]

    def __contains__(self, entity_name: object) -> bool:
        return entity_name in self._entities

    def __iter__(self) -> Iterator[EntitySchema]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def __repr__(self) -> str:
        return f"Schema({self.name!r}, entities={self.entity_names})"


def describe_record(record: Any) -> EntitySchema:
    """Entity schema for a record's class, named after the class"""
    return EntitySchema.from_model(type(record))


class SchemaRegistry:
    """
    Registry of schemas available to persistent containers.

    Maps schema names (as reported by a data source) to their Schema.
    """

    def __init__(self):
        self._schemas: Dict[str, Schema] = {}

    def register(self, schema: Schema, replace: bool = False) -> Schema:
        """Register a schema under its name"""
        if schema.name in self._schemas and not replace:
            raise ValueError(f"Schema {schema.name} is already registered")
        self._schemas[schema.name] = schema
        logger.info(f"Registered schema {schema.name}: {schema.entity_names}")
        return schema

    def unregister(self, name: str) -> Optional[Schema]:
        return self._schemas.pop(name, None)

    def get(self, name: str) -> Schema:
        try:
            return self._schemas[name]
        except KeyError:
            raise SchemaNotFoundError(f"No schema registered under {name!r}") from None

    def names(self) -> List[str]:
        return list(self._schemas)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas


# Registry used when none is passed explicitly
default_registry = SchemaRegistry()


def register_schema(
    name: str,
    models: Iterable[Type[SQLModel]],
    registry: Optional[SchemaRegistry] = None,
    replace: bool = False,
) -> Schema:
    """Build a schema from table models and register it"""
    target = registry if registry is not None else default_registry
    return target.register(Schema(name, models), replace=replace)


__all__ = [
    "AttributeSpec",
    "EntitySchema",
    "Schema",
    "SchemaRegistry",
    "default_registry",
    "register_schema",
    "describe_record",
    "is_table_model",
]
