"""Row store contract and its SQLAlchemy implementation.

The access layer only needs row-level create/read/update/delete with simple
filters. ``DataStore`` is that contract; ``SqlAlchemyStore`` fulfils it over
the tables declared in ``storefront.db.models``.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Protocol, Sequence

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from storefront.core.exceptions import StoreError
from storefront.db.base import Base
import storefront.db.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

FILTER_OPS = ("eq", "neq", "in", "lt", "lte", "gt", "gte")


class Filter(NamedTuple):
    """Column filter: ``Filter("role_id", "in", [...])``."""
    column: str
    op: str
    value: Any

    @classmethod
    def eq(cls, column: str, value: Any) -> "Filter":
        return cls(column, "eq", value)

    @classmethod
    def in_(cls, column: str, values: Iterable[Any]) -> "Filter":
        return cls(column, "in", list(values))

    @classmethod
    def lt(cls, column: str, value: Any) -> "Filter":
        return cls(column, "lt", value)


class DataStore(Protocol):
    """Port for row persistence. Every method raises StoreError on failure."""

    async def select(
        self,
        table: str,
        columns: Optional[Sequence[str]] = None,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]: ...

    async def insert(self, table: str, row: Row) -> Row: ...

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> int: ...

    async def delete(self, table: str, filters: Sequence[Filter]) -> int: ...


def _column(table: Table, name: str):
    if name not in table.c:
        raise StoreError(f"Unknown column {name!r}", table.name)
    return table.c[name]


def _condition(table: Table, flt: Filter):
    if flt.op not in FILTER_OPS:
        raise StoreError(f"Unsupported filter operator: {flt.op}", table.name)
    col = _column(table, flt.column)
    if flt.op == "eq":
        return col == flt.value
    if flt.op == "neq":
        return col != flt.value
    if flt.op == "in":
        return col.in_(list(flt.value))
    if flt.op == "lt":
        return col < flt.value
    if flt.op == "lte":
        return col <= flt.value
    if flt.op == "gt":
        return col > flt.value
    return col >= flt.value


class SqlAlchemyStore:
    """
    DataStore over a SQLAlchemy engine.

    Each call runs in a worker thread with its own connection, so concurrent
    awaits issue concurrent statements.
    """

    def __init__(self, engine: Engine, metadata=Base.metadata):
        self.engine = engine
        self.metadata = metadata

    def _table(self, name: str) -> Table:
        table = self.metadata.tables.get(name)
        if table is None:
            raise StoreError(f"Unknown table {name!r}", name)
        return table

    async def select(
        self,
        table: str,
        columns: Optional[Sequence[str]] = None,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        tbl = self._table(table)
        cols = [_column(tbl, c) for c in columns] if columns else list(tbl.c)
        stmt = select(*cols).where(*[_condition(tbl, f) for f in filters])
        if order_by:
            key = _column(tbl, order_by)
            stmt = stmt.order_by(key.desc() if descending else key)
        if limit is not None:
            stmt = stmt.limit(limit)

        def run() -> List[Row]:
            with self.engine.connect() as conn:
                return [dict(r._mapping) for r in conn.execute(stmt)]

        return await self._run(table, run)

    async def insert(self, table: str, row: Row) -> Row:
        tbl = self._table(table)
        stmt = insert(tbl).values(**row).returning(*tbl.c)

        def run() -> Row:
            with self.engine.begin() as conn:
                return dict(conn.execute(stmt).one()._mapping)

        return await self._run(table, run)

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> int:
        tbl = self._table(table)
        stmt = update(tbl).where(*[_condition(tbl, f) for f in filters]).values(**values)

        def run() -> int:
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount

        return await self._run(table, run)

    async def delete(self, table: str, filters: Sequence[Filter]) -> int:
        tbl = self._table(table)
        stmt = delete(tbl).where(*[_condition(tbl, f) for f in filters])

        def run() -> int:
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount

        return await self._run(table, run)

    async def _run(self, table: str, fn):
        try:
            return await asyncio.to_thread(fn)
        except SQLAlchemyError as e:
            logger.error("Store operation on %s failed: %s", table, e)
            raise StoreError(str(e), table) from e
