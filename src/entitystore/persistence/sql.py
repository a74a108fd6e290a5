"""
SQL Store - SQLModel Container and View Context

🗃️ SQL Database Store:
This module implements the store contract on top of SQLModel/SQLAlchemy.
The container owns the engine and creates the schema's tables; the view
context wraps one Session and translates filters and sort criteria into
SQL clauses.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence

from sqlalchemy import and_, asc, desc, event
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.engine import make_url
from sqlalchemy.exc import NoInspectionAvailable, SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.expression import ColumnElement
from sqlalchemy.sql.util import find_tables
from sqlmodel import Session, SQLModel, create_engine, select

from ..core.errors import CommitError, QueryError, StoreLoadError, UnknownEntityError
from ..core.query import Predicate, QueryFilter, QueryOperator, SortCriteria, SortDirection, SortSpec, normalize_sort
from ..core.schema import EntitySchema, Schema
from .base import StoreContainer, StoreContext
from .config import StoreConfig

logger = logging.getLogger(__name__)


class SQLModelContext(StoreContext):
    """
    View context over a single SQLModel Session.

    Fetches flush pending inserts and deletes first, so they see them. Changes
    flushed that way stay counted in has_changes until commit or rollback.
    """

    def __init__(self, schema: Schema, session: Session):
        super().__init__(schema)
        self._session = session
        self._flushed_changes = False
        event.listen(session, "after_flush", self._on_flush)
        event.listen(session, "after_commit", self._on_transaction_end)
        event.listen(session, "after_rollback", self._on_transaction_end)

    @property
    def session(self) -> Session:
        return self._session

    def _on_flush(self, session, flush_context) -> None:
        self._flushed_changes = True

    def _on_transaction_end(self, session) -> None:
        self._flushed_changes = False

    def insert_new(self, entity_name: str) -> Any:
        entity = self.entity(entity_name)
        record = entity.new_record()
        self._session.add(record)
        logger.debug(f"Inserted new {entity_name} record")
        return record

    def _build_where_clause(self, entity: EntitySchema, predicate: Optional[Predicate]):
        """Build SQLAlchemy where clause from a predicate"""
        if predicate is None:
            return None
        if isinstance(predicate, ColumnElement):
            own_table = entity.model.__table__
            foreign = sorted(
                table.name for table in find_tables(predicate, check_columns=True)
                if table is not None and table.name != own_table.name
            )
            if foreign:
                raise QueryError(f"Predicate for {entity.entity_name} references other tables: {foreign}")
            return predicate
        if isinstance(predicate, QueryFilter):
            filters: Sequence[QueryFilter] = [predicate]
        elif isinstance(predicate, (list, tuple)) and all(isinstance(f, QueryFilter) for f in predicate):
            filters = predicate
        else:
            raise QueryError(f"Unsupported predicate for {entity.entity_name}: {predicate!r}")

        conditions = []
        for filter_condition in filters:
            field_attr = self._column(entity, filter_condition.field)
            operator = filter_condition.operator
            value = filter_condition.value

            if operator == QueryOperator.EQUALS:
                conditions.append(field_attr == value)
            elif operator == QueryOperator.NOT_EQUALS:
                conditions.append(field_attr != value)
            elif operator == QueryOperator.GREATER_THAN:
                conditions.append(field_attr > value)
            elif operator == QueryOperator.GREATER_THAN_OR_EQUAL:
                conditions.append(field_attr >= value)
            elif operator == QueryOperator.LESS_THAN:
                conditions.append(field_attr < value)
            elif operator == QueryOperator.LESS_THAN_OR_EQUAL:
                conditions.append(field_attr <= value)
            elif operator == QueryOperator.IN:
                conditions.append(field_attr.in_(value))
            elif operator == QueryOperator.NOT_IN:
                conditions.append(~field_attr.in_(value))
            elif operator == QueryOperator.CONTAINS:
                conditions.append(field_attr.contains(value))
            elif operator == QueryOperator.STARTS_WITH:
                conditions.append(field_attr.startswith(value))
            elif operator == QueryOperator.ENDS_WITH:
                conditions.append(field_attr.endswith(value))
            elif operator == QueryOperator.IS_NULL:
                conditions.append(field_attr.is_(None))
            elif operator == QueryOperator.IS_NOT_NULL:
                conditions.append(field_attr.is_not(None))

        if not conditions:
            return None
        return and_(*conditions) if len(conditions) > 1 else conditions[0]

    def _build_order_clause(self, entity: EntitySchema, sort_criteria: List[SortCriteria]):
        """Build SQLAlchemy order clause from sort criteria"""
        order_clauses = []
        for sort_item in sort_criteria:
            field_attr = self._column(entity, sort_item.field)
            if sort_item.direction == SortDirection.DESC:
                order_clauses.append(desc(field_attr))
            else:
                order_clauses.append(asc(field_attr))
        return order_clauses

    def _column(self, entity: EntitySchema, field_name: str):
        if not entity.has_attribute(field_name):
            raise QueryError(f"Entity {entity.entity_name} has no attribute {field_name!r}")
        return getattr(entity.model, field_name)

    def fetch(self, entity_name: str, predicate: Optional[Predicate] = None,
              sort: Optional[SortSpec] = None) -> List[Any]:
        try:
            entity = self.entity(entity_name)
        except UnknownEntityError as e:
            raise QueryError(f"Cannot fetch {entity_name}: {e}") from e

        try:
            sort_criteria = normalize_sort(sort)
        except (TypeError, ValueError) as e:
            raise QueryError(f"Invalid sort specification for {entity_name}: {e}") from e

        stmt = select(entity.model)
        where_clause = self._build_where_clause(entity, predicate)
        if where_clause is not None:
            stmt = stmt.where(where_clause)
        order_clauses = self._build_order_clause(entity, sort_criteria)
        if order_clauses:
            stmt = stmt.order_by(*order_clauses)

        # Pending work is written first so a failed write surfaces as a commit failure
        try:
            self._session.flush()
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error(f"Error flushing pending changes: {e}")
            raise CommitError(f"Unresolved error writing pending changes: {e}") from e

        try:
            with self._session.no_autoflush:
                records = list(self._session.exec(stmt).all())
        except SQLAlchemyError as e:
            if not self._session.is_active:
                self._session.rollback()
            raise QueryError(f"Error querying {entity_name}: {e}") from e

        logger.debug(f"Fetched {len(records)} {entity_name} records")
        return records

    def delete(self, record: Any) -> None:
        try:
            state = sa_inspect(record)
        except NoInspectionAvailable:
            raise TypeError(f"{type(record).__name__} is not a mapped record") from None

        if state.transient:
            return
        if state.pending:
            # Never flushed: just drop it from the context
            self._session.expunge(record)
        else:
            self._session.delete(record)

    @property
    def has_changes(self) -> bool:
        session = self._session
        return self._flushed_changes or bool(session.new or session.deleted or session.dirty)

    def save(self) -> None:
        if not self.has_changes:
            return
        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error(f"Error committing changes: {e}")
            raise CommitError(f"Unresolved error committing changes: {e}") from e

    def rollback(self) -> None:
        self._session.rollback()
        self._flushed_changes = False

    def close(self) -> None:
        self._session.close()


class SQLModelContainer(StoreContainer):
    """
    Persistent container backed by a SQL database.

    The database location comes from StoreConfig.url_for(name); tables for
    every entity of the schema are created when the store is loaded.
    """

    def __init__(self, name: str, schema: Schema, config: Optional[StoreConfig] = None):
        super().__init__(name, schema, config)
        self.engine = None
        self._context: Optional[SQLModelContext] = None

    @property
    def is_loaded(self) -> bool:
        return self._context is not None

    @property
    def view_context(self) -> SQLModelContext:
        if self._context is None:
            raise StoreLoadError(f"Persistent store for {self.name} has not been loaded")
        return self._context

    def _engine_options(self, url: str) -> dict:
        options = {
            "echo": self.config.echo,
            "connect_args": dict(self.config.connect_args),
        }
        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite":
            database = parsed.database
            if not database or database == ":memory:":
                # One shared connection keeps the in-memory database alive
                options["poolclass"] = StaticPool
                options["connect_args"].setdefault("check_same_thread", False)
            else:
                Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        return options

    def load_persistent_stores(self) -> None:
        if self._context is not None:
            return

        url = self.config.url_for(self.name)
        try:
            engine = create_engine(url, **self._engine_options(url))
            SQLModel.metadata.create_all(engine, tables=self.schema.tables)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Error loading persistent store for {self.name}: {e}")
            raise StoreLoadError(f"Unresolved error loading store {self.name}: {e}") from e

        self.engine = engine
        self._context = SQLModelContext(self.schema, Session(engine, expire_on_commit=False))
        logger.info(f"Loaded persistent store {self.name} at {engine.url}")

    def close(self) -> None:
        if self._context is not None:
            self._context.close()
            self._context = None
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
        logger.info(f"Closed persistent store {self.name}")


__all__ = ["SQLModelContext", "SQLModelContainer"]
