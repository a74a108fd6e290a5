"""
EntityStore - Schema-described Object Store Facade

Insert, deduplicated insert, update, fetch and delete records of named
entity collections. The store is opened lazily for a schema name supplied
by the host application through a data source.
"""

__version__ = "1.0.0"

from .core import (
    PersistenceError, StoreLoadError, SchemaNotFoundError, UnknownEntityError,
    AttributeValueError, QueryError, CommitError,
    QueryOperator, SortDirection, QueryFilter, SortCriteria, QueryBuilder,
    query, equals, asc, desc,
    EntitySchema, Schema, SchemaRegistry, default_registry, register_schema
)
from .persistence import (
    StoreContainer, StoreContext, SQLModelContainer, SQLModelContext,
    Environment, StoreConfig, LoggingConfig, configure_logging
)
from .app import (
    DataSource, StaticDataSource, StoreState, PersistenceManager, get_persistence_manager
)

__all__ = [
    # Facade
    'PersistenceManager',
    'get_persistence_manager',
    'DataSource',
    'StaticDataSource',
    'StoreState',

    # Schema
    'EntitySchema',
    'Schema',
    'SchemaRegistry',
    'default_registry',
    'register_schema',

    # Queries
    'QueryOperator',
    'SortDirection',
    'QueryFilter',
    'SortCriteria',
    'QueryBuilder',
    'query',
    'equals',
    'asc',
    'desc',

    # Stores
    'StoreContainer',
    'StoreContext',
    'SQLModelContainer',
    'SQLModelContext',
    'Environment',
    'StoreConfig',
    'LoggingConfig',
    'configure_logging',

    # Errors
    'PersistenceError',
    'StoreLoadError',
    'SchemaNotFoundError',
    'UnknownEntityError',
    'AttributeValueError',
    'QueryError',
    'CommitError',
]
