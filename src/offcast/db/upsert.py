"""Dialect-aware INSERT ... ON CONFLICT construction."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.ext.asyncio import AsyncSession


def insert_for(db: AsyncSession, table: Table) -> Any:  # noqa: ANN401
    """Return an INSERT construct that supports ``on_conflict_*`` for the session's dialect."""
    if db.get_bind().dialect.name == "postgresql":
        return pg_insert(table)
    return sqlite_insert(table)


async def insert_ignore(db: AsyncSession, table: Table, values: dict[str, Any], conflict_columns: list[str]) -> bool:
    """INSERT ... ON CONFLICT DO NOTHING. Returns True when a row was written."""
    stmt = insert_for(db, table).values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
    result = await db.execute(stmt)
    return bool(result.rowcount)
