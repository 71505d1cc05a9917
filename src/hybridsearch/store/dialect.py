"""Dialect-aware SQL helpers — upsert and table truncation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, text

if TYPE_CHECKING:
    from sqlalchemy import Engine
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession


SUPPORTED_DIALECTS = frozenset({"sqlite", "postgresql"})


def get_dialect(engine: Engine | AsyncEngine) -> str:
    """Return 'sqlite', 'postgresql', or the raw dialect name."""
    # AsyncEngine wraps a sync engine
    sync_engine = getattr(engine, "sync_engine", engine)
    name = sync_engine.dialect.name
    if name in ("postgresql", "postgres"):
        return "postgresql"
    return name


async def upsert_row(
    session: AsyncSession,
    dialect: str,
    model: type,
    values: dict[str, Any],
    conflict_keys: list[str],
    update_keys: list[str] | None = None,
) -> int:
    """Insert *values* into *model*'s table, replacing the row on key conflict.

    Emits a single ``INSERT ... ON CONFLICT (conflict_keys) DO UPDATE``
    statement, so the row is either fully written or untouched.  Columns
    listed in *update_keys* (default: every non-key column in *values*) are
    overwritten on conflict.  Returns the rowcount.
    """
    if dialect == "postgresql":
        from sqlalchemy.dialects import postgresql as dialect_module
    elif dialect == "sqlite":
        from sqlalchemy.dialects import sqlite as dialect_module
    else:
        msg = f"Upsert is not supported for dialect {dialect!r}"
        raise ValueError(msg)

    stmt = dialect_module.insert(model).values(**values)

    if update_keys is not None:
        update_cols = {k: stmt.excluded[k] for k in values if k in update_keys}
    else:
        update_cols = {k: stmt.excluded[k] for k in values if k not in conflict_keys}

    if update_cols:
        stmt = stmt.on_conflict_do_update(index_elements=conflict_keys, set_=update_cols)
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=conflict_keys)

    result = await session.execute(stmt)
    return result.rowcount  # type: ignore[return-value]


async def truncate_table(session: AsyncSession, dialect: str, model: type) -> None:
    """Remove every row of *model*'s table.

    PostgreSQL uses ``TRUNCATE`` (which takes an exclusive table lock);
    other dialects fall back to an unqualified ``DELETE``.
    """
    if dialect == "postgresql":
        table_name: str = model.__tablename__  # type: ignore[attr-defined]
        await session.execute(text(f"TRUNCATE TABLE {table_name} RESTART IDENTITY"))
        return
    await session.execute(delete(model))
