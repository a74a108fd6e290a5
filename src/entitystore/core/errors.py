"""
EntityStore Errors

Exception hierarchy shared by the schema, store and manager layers.
"""


class PersistenceError(Exception):
    """Base exception for persistence operations"""
    pass


class StoreLoadError(PersistenceError):
    """Raised when a persistent store cannot be opened"""
    pass


class SchemaNotFoundError(StoreLoadError):
    """Raised when no schema is registered under the requested name"""
    pass


class UnknownEntityError(PersistenceError, KeyError):
    """Raised when an entity collection is not part of the active schema"""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class AttributeValueError(PersistenceError, ValueError):
    """Raised when a payload value cannot be stored in a typed attribute"""

    def __init__(self, entity_name: str, attribute: str, value, reason: str):
        self.entity_name = entity_name
        self.attribute = attribute
        self.value = value
        super().__init__(
            f"Invalid value {value!r} for {entity_name}.{attribute}: {reason}"
        )


class QueryError(PersistenceError):
    """Raised when a fetch request cannot be executed"""
    pass


class CommitError(PersistenceError):
    """Raised when pending changes cannot be committed to the store"""
    pass


__all__ = [
    "PersistenceError",
    "StoreLoadError",
    "SchemaNotFoundError",
    "UnknownEntityError",
    "AttributeValueError",
    "QueryError",
    "CommitError",
]
