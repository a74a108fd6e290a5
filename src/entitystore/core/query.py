"""
Query Vocabulary - Predicates and Sort Specifications

🔎 Backend-neutral fetch requests:
Filters and sort criteria name entity attributes; the store context turns
them into SQL clauses against the entity's table model.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Union


class QueryOperator(Enum):
    """Query operators for filtering"""
    EQUALS = "eq"
    NOT_EQUALS = "ne"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "gte"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "lte"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


_VALUELESS_OPERATORS = (QueryOperator.IS_NULL, QueryOperator.IS_NOT_NULL)


class SortDirection(Enum):
    """Sort direction for ordering"""
    ASC = "asc"
    DESC = "desc"


@dataclass
class QueryFilter:
    """Represents a single filter condition"""
    field: str
    operator: QueryOperator = QueryOperator.EQUALS
    value: Any = None

    def __post_init__(self):
        if self.operator in _VALUELESS_OPERATORS:
            self.value = None
        elif self.value is None:
            raise ValueError(
                f"Value required for operator {self.operator}; use IS_NULL to match missing values"
            )
        elif self.operator in (QueryOperator.IN, QueryOperator.NOT_IN):
            if isinstance(self.value, (str, bytes)) or not hasattr(self.value, "__iter__"):
                raise ValueError(f"Operator {self.operator} needs a collection of values")
            self.value = list(self.value)


@dataclass
class SortCriteria:
    """Represents sorting criteria"""
    field: str
    direction: SortDirection = SortDirection.ASC

    @property
    def ascending(self) -> bool:
        return self.direction == SortDirection.ASC


# A predicate is one filter, a sequence of filters that must all match, or a
# SQLAlchemy boolean clause over the entity's columns.
Predicate = Union[QueryFilter, Sequence[QueryFilter], Any]
SortSpec = Sequence[Union[SortCriteria, Tuple[str, SortDirection], str]]


def normalize_sort(sort: Optional[SortSpec]) -> List[SortCriteria]:
    """Turn the accepted sort shorthands into SortCriteria, keeping order"""
    if not sort:
        return []
    if isinstance(sort, (str, SortCriteria)):
        sort = [sort]
    criteria = []
    for item in sort:
        if isinstance(item, SortCriteria):
            criteria.append(item)
        elif isinstance(item, str):
            criteria.append(SortCriteria(item))
        else:
            name, direction = item
            if not isinstance(direction, SortDirection):
                direction = SortDirection(direction)
            criteria.append(SortCriteria(name, direction))
    return criteria


class QueryBuilder:
    """Builder for constructing filter and sort lists"""

    def __init__(self):
        self.filters: List[QueryFilter] = []
        self.sort_by: List[SortCriteria] = []

    def where(self, field: str, operator: QueryOperator, value: Any = None) -> 'QueryBuilder':
        self.filters.append(QueryFilter(field, operator, value))
        return self

    def equals(self, field: str, value: Any) -> 'QueryBuilder':
        return self.where(field, QueryOperator.EQUALS, value)

    def not_equals(self, field: str, value: Any) -> 'QueryBuilder':
        return self.where(field, QueryOperator.NOT_EQUALS, value)

    def gt(self, field: str, value: Any) -> 'QueryBuilder':
        return self.where(field, QueryOperator.GREATER_THAN, value)

    def lt(self, field: str, value: Any) -> 'QueryBuilder':
        return self.where(field, QueryOperator.LESS_THAN, value)

    def contains(self, field: str, value: str) -> 'QueryBuilder':
        return self.where(field, QueryOperator.CONTAINS, value)

    def is_null(self, field: str) -> 'QueryBuilder':
        return self.where(field, QueryOperator.IS_NULL)

    def order_by(self, field: str, direction: SortDirection = SortDirection.ASC) -> 'QueryBuilder':
        self.sort_by.append(SortCriteria(field, direction))
        return self

    def build(self) -> Tuple[List[QueryFilter], List[SortCriteria]]:
        """Return (predicate, sort) ready for PersistenceManager.fetch"""
        return list(self.filters), list(self.sort_by)


# Convenience functions
def query() -> QueryBuilder:
    """Create a new query builder"""
    return QueryBuilder()


def equals(field: str, value: Any) -> QueryFilter:
    """Create an equals filter"""
    return QueryFilter(field, QueryOperator.EQUALS, value)


def asc(field: str) -> SortCriteria:
    return SortCriteria(field, SortDirection.ASC)


def desc(field: str) -> SortCriteria:
    return SortCriteria(field, SortDirection.DESC)


__all__ = [
    "QueryOperator",
    "SortDirection",
    "QueryFilter",
    "SortCriteria",
    "Predicate",
    "SortSpec",
    "normalize_sort",
    "QueryBuilder",
    "query",
    "equals",
    "asc",
    "desc",
]
