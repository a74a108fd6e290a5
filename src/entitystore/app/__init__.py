"""
EntityStore Application Layer

The persistence manager facade and its data source contract.
"""

from .manager import (
    DataSource, StaticDataSource, StoreState, PersistenceManager, get_persistence_manager
)

__all__ = [
    "DataSource",
    "StaticDataSource",
    "StoreState",
    "PersistenceManager",
    "get_persistence_manager",
]
