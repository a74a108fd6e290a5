"""
EntityStore Persistence Layer - Base Classes

This module provides the abstract contract the persistence manager relies on:
a container that opens the store for a named schema, and the single view
context through which records are inserted, fetched, deleted and saved.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from ..core.query import Predicate, SortSpec
from ..core.schema import EntitySchema, Schema
from .config import StoreConfig


class StoreContext(ABC):
    """
    Abstract base class for a mutable working set over a persistent store.

    Inserts and deletes are pending until save(); fetches observe pending
    work of the same context.
    """

    def __init__(self, schema: Schema):
        self.schema = schema

    def entity(self, entity_name: str) -> EntitySchema:
        """Look up an entity collection of this context's schema"""
        return self.schema.entity(entity_name)

    @abstractmethod
    def insert_new(self, entity_name: str) -> Any:
        """
        Create an empty record of the collection and add it to the context.

        Raises:
            UnknownEntityError: If the collection is not in the schema
        """
        pass

    @abstractmethod
    def fetch(self, entity_name: str, predicate: Optional[Predicate] = None,
              sort: Optional[SortSpec] = None) -> List[Any]:
        """
        Fetch matching records, fully materialized.

        Raises:
            QueryError: If the request cannot be executed
            CommitError: If writing pending changes fails; the context is
                rolled back first
        """
        pass

    @abstractmethod
    def delete(self, record: Any) -> None:
        """Mark a record for removal"""
        pass

    @property
    @abstractmethod
    def has_changes(self) -> bool:
        """Whether the context holds work not yet committed"""
        pass

    @abstractmethod
    def save(self) -> None:
        """
        Commit pending changes atomically.

        Raises:
            CommitError: If the commit fails; the context is rolled back first
        """
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Discard pending changes"""
        pass

    def close(self) -> None:
        """Release resources held by the context"""
        pass


class StoreContainer(ABC):
    """
    Abstract base class for a persistent container.

    A container is created for one schema name, opens its backing store once
    via load_persistent_stores() and exposes a single view context.
    """

    def __init__(self, name: str, schema: Schema, config: Optional[StoreConfig] = None):
        self.name = name
        self.schema = schema
        self.config = config or StoreConfig()

    @abstractmethod
    def load_persistent_stores(self) -> None:
        """
        Open the backing store and prepare the schema's collections.

        Raises:
            StoreLoadError: If the store cannot be opened
        """
        pass

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        pass

    @property
    @abstractmethod
    def view_context(self) -> StoreContext:
        """The container's single shared context"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Tear down the context and release the store"""
        pass


__all__ = ["StoreContext", "StoreContainer"]
