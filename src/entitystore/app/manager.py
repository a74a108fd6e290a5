"""
Persistence Manager - Store Facade

💾 Insert, update, fetch and delete against named entity collections:
The manager resolves its persistent container lazily, using the schema name
reported by a weakly referenced data source, and runs every operation
against the container's single view context.
"""

import logging
import weakref
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Protocol

from ..core.errors import PersistenceError, QueryError, UnknownEntityError
from ..core.query import Predicate, SortSpec
from ..core.schema import EntitySchema, SchemaRegistry, default_registry, describe_record
from ..persistence.base import StoreContainer, StoreContext
from ..persistence.config import StoreConfig
from ..persistence.sql import SQLModelContainer

logger = logging.getLogger(__name__)


class DataSource(Protocol):
    """Supplies the schema name a manager should open"""

    def schema_name(self, manager: "PersistenceManager") -> Optional[str]:
        ...


class StaticDataSource:
    """
    Data source reporting a fixed schema name.

    The manager only keeps a weak reference: the host must hold on to this
    object at least until the first operation has resolved the store.
    """

    def __init__(self, name: Optional[str]):
        self.name = name

    def schema_name(self, manager: "PersistenceManager") -> Optional[str]:
        return self.name


class StoreState(Enum):
    """Lifecycle of a manager's persistent container"""
    UNINITIALIZED = "uninitialized"
    RESOLVING = "resolving"
    READY = "ready"
    ABSENT = "absent"


ContainerFactory = Callable[[str], StoreContainer]


class PersistenceManager:
    """
    Facade over a lazily built persistent container.

    Operations return None (or do nothing) when no schema name is available;
    that state is permanent for the manager. Commit failures always raise
    CommitError. Query failures return None unless the configuration sets
    raise_query_errors.

    Usage:
        manager = PersistenceManager(data_source)
        task = manager.insert("Task", {"title": "A", "done": False}, instant_save=True)
        open_tasks = manager.fetch("Task", equals("done", False), [asc("title")])
    """

    def __init__(
        self,
        data_source: Optional[DataSource] = None,
        *,
        config: Optional[StoreConfig] = None,
        registry: Optional[SchemaRegistry] = None,
        container_factory: Optional[ContainerFactory] = None,
    ):
        self.config = config or StoreConfig()
        self.registry = registry if registry is not None else default_registry
        self._container_factory = container_factory or self._open_sql_container
        self._data_source_ref: Optional[weakref.ref] = None
        self._container: Optional[StoreContainer] = None
        self._state = StoreState.UNINITIALIZED
        self.data_source = data_source

    # Configuration source

    @property
    def data_source(self) -> Optional[DataSource]:
        if self._data_source_ref is None:
            return None
        return self._data_source_ref()

    @data_source.setter
    def data_source(self, source: Optional[DataSource]) -> None:
        self._data_source_ref = weakref.ref(source) if source is not None else None

    @property
    def schema_name(self) -> Optional[str]:
        """Schema name currently reported by the data source"""
        source = self.data_source
        if source is None:
            return None
        return source.schema_name(self)

    # Container lifecycle

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def container(self) -> Optional[StoreContainer]:
        return self._container

    @property
    def has_changes(self) -> bool:
        if self._state is not StoreState.READY:
            return False
        return self._container.view_context.has_changes

    def _open_sql_container(self, name: str) -> StoreContainer:
        return SQLModelContainer(name, self.registry.get(name), self.config)

    def _resolve_context(self) -> Optional[StoreContext]:
        if self._state is StoreState.READY:
            return self._container.view_context
        if self._state is StoreState.ABSENT:
            return None
        if self._state is StoreState.RESOLVING:
            raise PersistenceError("Persistent store is still being resolved")

        self._state = StoreState.RESOLVING
        try:
            name = self.schema_name
            if not name:
                self._state = StoreState.ABSENT
                logger.warning("No schema name available from data source; persistence disabled")
                return None

            container = self._container_factory(name)
            container.load_persistent_stores()
        except Exception:
            self._state = StoreState.UNINITIALIZED
            raise

        self._container = container
        self._state = StoreState.READY
        logger.info(f"Persistent container ready for schema {name}")
        return container.view_context

    def _query_failed(self, error: QueryError) -> None:
        if self.config.raise_query_errors:
            raise error
        logger.error(f"Query failed: {error}")

    def _entity_for(self, record: Any) -> EntitySchema:
        if self._state is StoreState.READY:
            try:
                return self._container.schema.entity_for(type(record))
            except UnknownEntityError:
                pass
        return describe_record(record)

    # Saving

    def save(self) -> None:
        """
        Commit pending changes of the view context, if there are any.

        Raises:
            CommitError: If the commit fails; pending changes are rolled back
        """
        context = self._resolve_context()
        if context is None:
            return
        if context.has_changes:
            context.save()
            logger.debug("Saved view context")

    # Operations

    def insert(self, entity_name: str, payload: Mapping[str, Any], instant_save: bool = False) -> Optional[Any]:
        """
        Insert a new record, allowing duplicates.

        Args:
            entity_name: Entity collection to insert into
            payload: Attribute values; keys the entity does not declare are ignored
            instant_save: Save the view context right away

        Returns:
            The new record, or None when persistence is unavailable
        """
        context = self._resolve_context()
        if context is None:
            return None

        record = context.insert_new(entity_name)
        try:
            return self.update(record, payload, instant_save=instant_save)
        except PersistenceError:
            # Leave no half-filled record behind in the context
            context.delete(record)
            raise

    def insert_if_absent(
        self,
        entity_name: str,
        predicate: Predicate,
        payload: Mapping[str, Any],
        instant_save: bool = False,
    ) -> Optional[Any]:
        """
        Insert a new record only if no existing record matches the predicate.

        Returns:
            The new record; None when a match exists, the duplicate check
            failed or persistence is unavailable

        Raises:
            CommitError: If pending changes could not be written before the check
        """
        context = self._resolve_context()
        if context is None:
            return None

        try:
            matches = context.fetch(entity_name, predicate)
        except QueryError as e:
            self._query_failed(e)
            return None

        if matches:
            logger.debug(f"Skipped insert into {entity_name}: {len(matches)} matching record(s)")
            return None
        return self.insert(entity_name, payload, instant_save=instant_save)

    def update(self, record: Any, payload: Mapping[str, Any], instant_save: bool = False) -> Any:
        """
        Overwrite the record's declared attributes named in the payload.

        Returns:
            The same record
        """
        entity = self._entity_for(record)
        written = entity.apply(record, payload)
        if written:
            logger.debug(f"Updated {entity.entity_name} attributes {written}")
        if instant_save:
            self.save()
        return record

    def fetch(
        self,
        entity_name: str,
        predicate: Optional[Predicate] = None,
        sort: Optional[SortSpec] = None,
    ) -> Optional[List[Any]]:
        """
        Fetch records of a collection.

        Args:
            entity_name: Entity collection to query
            predicate: Filter(s) or SQL clause; None matches every record
            sort: Sort criteria applied in order

        Returns:
            Matching records (possibly empty), or None when persistence is
            unavailable or the query failed

        Raises:
            CommitError: If pending changes could not be written before the query
        """
        context = self._resolve_context()
        if context is None:
            return None
        try:
            return context.fetch(entity_name, predicate, sort)
        except QueryError as e:
            self._query_failed(e)
            return None

    def delete(self, record: Any, instant_save: bool = False) -> None:
        """Mark a record for removal"""
        context = self._resolve_context()
        if context is None:
            return
        context.delete(record)
        if instant_save:
            self.save()

    def delete_all(self, entity_name: str, instant_save: bool = False) -> None:
        """Delete every record of a collection, one record at a time"""
        context = self._resolve_context()
        if context is None:
            return
        records = self.fetch(entity_name) or []
        for record in records:
            context.delete(record)
        logger.debug(f"Marked {len(records)} {entity_name} record(s) for deletion")
        if instant_save:
            self.save()


_shared_manager: Optional[PersistenceManager] = None


def get_persistence_manager() -> PersistenceManager:
    """Process-wide manager configured from the environment"""
    global _shared_manager
    if _shared_manager is None:
        _shared_manager = PersistenceManager(config=StoreConfig.from_env())
    return _shared_manager


__all__ = [
    "DataSource",
    "StaticDataSource",
    "StoreState",
    "PersistenceManager",
    "get_persistence_manager",
]
