"""
EntityStore Core Module

Schema descriptions, query vocabulary and the error hierarchy.
No dependency on a particular store implementation.
"""

from .errors import (
    PersistenceError, StoreLoadError, SchemaNotFoundError, UnknownEntityError,
    AttributeValueError, QueryError, CommitError
)
from .query import (
    QueryOperator, SortDirection, QueryFilter, SortCriteria, QueryBuilder,
    query, equals, asc, desc
)
from .schema import (
    AttributeSpec, EntitySchema, Schema, SchemaRegistry, default_registry,
    register_schema, describe_record
)

__all__ = [
    "PersistenceError",
    "StoreLoadError",
    "SchemaNotFoundError",
    "UnknownEntityError",
    "AttributeValueError",
    "QueryError",
    "CommitError",
    "QueryOperator",
    "SortDirection",
    "QueryFilter",
    "SortCriteria",
    "QueryBuilder",
    "query",
    "equals",
    "asc",
    "desc",
    "AttributeSpec",
    "EntitySchema",
    "Schema",
    "SchemaRegistry",
    "default_registry",
    "register_schema",
    "describe_record",
]
