"""Relational store access: filtered select, batch insert, upsert, update and delete.

Every call runs in its own transaction and commits on success. There is no
transaction spanning aggregation stages; callers rely on idempotent re-runs.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from sqlalchemy import Table, create_engine, delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .errors import StoreError
from .tables import metadata

logger = logging.getLogger('cfbfantasy.store')

Filters = Optional[Mapping[str, Any]]
OrderBy = Optional[Union[str, Sequence[str]]]


def create_store_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine for the store.

    In-memory SQLite URLs share a single connection so every Store call
    sees the same database.
    """
    if database_url in ('sqlite://', 'sqlite:///:memory:'):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


class Store:
    """
    Thin table-keyed facade over a SQLAlchemy engine.

    Rows go in and come out as plain dicts.

    Example:
        store = Store.from_url('sqlite://', create_schema=True)
        store.insert_batch('seasons', [{'year': 2025}])
        season = store.select_one('seasons', {'year': 2025})
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str, create_schema: bool = False) -> 'Store':
        store = cls(create_store_engine(database_url))
        if create_schema:
            store.create_schema()
        return store

    def create_schema(self) -> None:
        """Create any missing tables."""
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f'Failed to create schema: {e}') from e

    def _table(self, name: str) -> Table:
        try:
            return metadata.tables[name]
        except KeyError:
            raise StoreError(f'Unknown table: {name}') from None

    @staticmethod
    def _where(table: Table, filters: Filters) -> list:
        clauses = []
        for column_name, value in (filters or {}).items():
            if column_name not in table.c:
                raise StoreError(f'Unknown column {table.name}.{column_name}')
            column = table.c[column_name]
            if value is None:
                clauses.append(column.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                clauses.append(column.in_(list(value)))
            else:
                clauses.append(column == value)
        return clauses

    @staticmethod
    def _order(table: Table, order_by: OrderBy) -> list:
        if not order_by:
            return []
        if isinstance(order_by, str):
            order_by = [order_by]
        ordering = []
        for key in order_by:
            descending = key.startswith('-')
            column = table.c[key.lstrip('-')]
            ordering.append(column.desc() if descending else column.asc())
        return ordering

    def select(
        self,
        table_name: str,
        filters: Filters = None,
        order_by: OrderBy = None,
    ) -> list[dict]:
        """
        Select rows matching equality filters.

        Args:
            table_name: Table to read
            filters: column -> value; a list/tuple/set means IN, None means IS NULL
            order_by: Column name or names; prefix with '-' for descending

        Returns:
            List of row dicts

        Raises:
            StoreError: If the query fails
        """
        table = self._table(table_name)
        statement = select(table).where(*self._where(table, filters))
        statement = statement.order_by(*self._order(table, order_by))
        try:
            with self.engine.connect() as conn:
                return [dict(row._mapping) for row in conn.execute(statement)]
        except SQLAlchemyError as e:
            raise StoreError(f'Failed to read {table_name}: {e}') from e

    def select_one(self, table_name: str, filters: Filters = None) -> Optional[dict]:
        """First row matching filters, or None."""
        rows = self.select(table_name, filters)
        return rows[0] if rows else None

    def insert_batch(self, table_name: str, rows: Iterable[Mapping[str, Any]]) -> int:
        """
        Insert rows in a single statement.

        Returns:
            Number of rows inserted

        Raises:
            StoreError: If the insert fails (nothing from the batch is kept)
        """
        rows = [dict(row) for row in rows]
        if not rows:
            return 0
        table = self._table(table_name)
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(table), rows)
        except SQLAlchemyError as e:
            raise StoreError(f'Failed to insert into {table_name}: {e}') from e
        return len(rows)

    def upsert(
        self,
        table_name: str,
        row: Mapping[str, Any],
        conflict_keys: Sequence[str],
    ) -> dict:
        """
        Insert a row, or update the existing row with the same conflict keys.

        Returns:
            The stored row

        Raises:
            StoreError: If the write fails or a conflict key is missing from row
        """
        table = self._table(table_name)
        missing = [key for key in conflict_keys if key not in row]
        if missing:
            raise StoreError(f'Upsert into {table_name} missing conflict keys: {missing}')
        key_filters = {key: row[key] for key in conflict_keys}
        where = self._where(table, key_filters)
        try:
            with self.engine.begin() as conn:
                existing = conn.execute(select(table).where(*where)).first()
                if existing is None:
                    conn.execute(insert(table).values(**row))
                else:
                    values = {k: v for k, v in row.items() if k not in conflict_keys and k != 'id'}
                    if values:
                        conn.execute(update(table).where(*where).values(**values))
                stored = conn.execute(select(table).where(*where)).first()
        except SQLAlchemyError as e:
            raise StoreError(f'Failed to upsert into {table_name}: {e}') from e
        return dict(stored._mapping)

    def update(self, table_name: str, values: Mapping[str, Any], filters: Filters) -> int:
        """
        Update rows matching filters.

        Returns:
            Number of rows updated
        """
        if not filters:
            raise StoreError(f'Refusing unfiltered update of {table_name}')
        table = self._table(table_name)
        statement = update(table).where(*self._where(table, filters)).values(**values)
        try:
            with self.engine.begin() as conn:
                return conn.execute(statement).rowcount
        except SQLAlchemyError as e:
            raise StoreError(f'Failed to update {table_name}: {e}') from e

    def delete(self, table_name: str, filters: Filters) -> int:
        """
        Delete rows matching filters.

        Returns:
            Number of rows deleted
        """
        if not filters:
            raise StoreError(f'Refusing unfiltered delete from {table_name}')
        table = self._table(table_name)
        statement = delete(table).where(*self._where(table, filters))
        try:
            with self.engine.begin() as conn:
                deleted = conn.execute(statement).rowcount
        except SQLAlchemyError as e:
            raise StoreError(f'Failed to delete from {table_name}: {e}') from e
        logger.debug(f'Deleted {deleted} rows from {table_name}')
        return deleted
