"""DatabaseIndexStore — IndexStore on any SQLAlchemy async engine."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel, select

from hybridsearch import vectors
from hybridsearch.exceptions import ConfigurationError, SchemaNotInitializedError, StorageError
from hybridsearch.models.entries import IndexEntry, QueryLog
from hybridsearch.models.types import require_pgvector
from hybridsearch.store import postgres
from hybridsearch.store._locks import ReadWriteLock
from hybridsearch.store.dialect import SUPPORTED_DIALECTS, get_dialect, truncate_table, upsert_row
from hybridsearch.text.lexical import build_lexical_index

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Collection, Sequence

    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

_CONFLICT_KEYS = ["source_id", "source_type", "language_id"]
_UPDATE_KEYS = [
    "parent_scope_id",
    "scope_id",
    "title",
    "content",
    "url",
    "content_vector",
    "title_vector",
    "lexical_index",
    "content_hash",
    "boost_factor",
    "updated_at",
]


class DatabaseIndexStore:
    """Index store backed by a relational database (SQLite or PostgreSQL).

    Sessions are created per operation from an ``async_sessionmaker``, so
    one instance is safe to share between concurrent tasks.  Row operations
    hold the shared side of a :class:`ReadWriteLock`; ``ensure_schema`` and
    ``clear`` hold the exclusive side.

    On PostgreSQL vectors are stored with pgvector and distance ranking runs
    in SQL; when *dimensions* is given ``ensure_schema`` also builds an HNSW
    cosine index for it.  On SQLite the same lookups scan the candidates in
    Python.

    Usage::

        store = DatabaseIndexStore.from_url("sqlite+aiosqlite:///index.db")
        await store.ensure_schema()
    """

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        owns_engine: bool = False,
        dimensions: int | None = None,
    ) -> None:
        dialect = get_dialect(engine)
        if dialect not in SUPPORTED_DIALECTS:
            msg = f"Unsupported database dialect {dialect!r}; use sqlite or postgresql"
            raise ConfigurationError(msg)
        if dialect == "postgresql":
            require_pgvector()

        self._engine = engine
        self._owns_engine = owns_engine
        self._dialect = dialect
        self._dimensions = dimensions
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._lock = ReadWriteLock()
        self._schema_ready = False

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        dimensions: int | None = None,
        **engine_kwargs: object,
    ) -> DatabaseIndexStore:
        """Create a store that owns a new engine for *url*."""
        engine = create_async_engine(url, **engine_kwargs)
        return cls(engine, owns_engine=True, dimensions=dimensions)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def ensure_schema(self) -> None:
        """Create the index and query-log tables (and PostgreSQL indexes) if missing."""
        tables = [IndexEntry.__table__, QueryLog.__table__]  # type: ignore[attr-defined]
        async with self._lock.exclusive():
            try:
                async with self._engine.begin() as conn:
                    if self._dialect == "postgresql":
                        await conn.execute(postgres.CREATE_EXTENSION)
                    await conn.run_sync(
                        lambda c: SQLModel.metadata.create_all(c, tables=tables)
                    )
                    if self._dialect == "postgresql" and self._dimensions:
                        await conn.execute(postgres.create_vector_index(self._dimensions))
            except SQLAlchemyError as e:
                msg = f"Failed to create index schema: {e}"
                raise StorageError(msg) from e
            self._schema_ready = True
        logger.debug("Index schema ready (%s)", self._dialect)

    # ------------------------------------------------------------------
    # IndexStore protocol
    # ------------------------------------------------------------------

    async def upsert(self, entry: IndexEntry) -> None:
        """Insert *entry* or replace the row with the same key in one statement."""
        await self._require_schema()
        now = datetime.now(UTC)
        values = {
            "source_id": entry.source_id,
            "source_type": entry.source_type,
            "parent_scope_id": entry.parent_scope_id,
            "scope_id": entry.scope_id,
            "language_id": entry.language_id,
            "title": entry.title,
            "content": entry.content,
            "url": entry.url,
            "content_vector": list(entry.content_vector),
            "title_vector": list(entry.title_vector),
            "lexical_index": build_lexical_index(entry.title, entry.content),
            "content_hash": entry.content_hash,
            "boost_factor": entry.boost_factor,
            "created_at": now,
            "updated_at": now,
        }
        async with self._lock.shared(), self._session() as session:
            await upsert_row(
                session,
                self._dialect,
                IndexEntry,
                values,
                conflict_keys=_CONFLICT_KEYS,
                update_keys=_UPDATE_KEYS,
            )
            await session.commit()

    async def get(
        self,
        source_id: int,
        source_type: str = "pages",
        language_id: int = 0,
    ) -> IndexEntry | None:
        """Return the entry for the key, or ``None``."""
        await self._require_schema()
        stmt = select(IndexEntry).where(
            IndexEntry.source_id == source_id,
            IndexEntry.source_type == source_type,
            IndexEntry.language_id == language_id,
        )
        async with self._lock.shared(), self._session() as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    async def get_many(self, ids: Sequence[int]) -> list[IndexEntry]:
        """Return entries by primary key, preserving the order of *ids*."""
        if not ids:
            return []
        await self._require_schema()
        stmt = select(IndexEntry).where(IndexEntry.id.in_(list(ids)))  # type: ignore[union-attr]
        async with self._lock.shared(), self._session() as session:
            result = await session.execute(stmt)
            by_id = {e.id: e for e in result.scalars().all()}
        return [by_id[i] for i in ids if i in by_id]

    async def candidates(self, scope_id: int = 0) -> list[IndexEntry]:
        """Return entries in *scope_id* (every entry when 0), ordered by id."""
        await self._require_schema()
        stmt = select(IndexEntry)
        if scope_id != 0:
            stmt = stmt.where(IndexEntry.scope_id == scope_id)
        stmt = stmt.order_by(IndexEntry.id)  # type: ignore[arg-type]
        async with self._lock.shared(), self._session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def nearest(
        self,
        vector: Sequence[float],
        k: int,
        *,
        exclude_id: int | None = None,
    ) -> list[tuple[int, float]]:
        """Return up to *k* ``(entry_id, cosine_distance)`` pairs, closest first.

        Ties are broken by ascending id.  On PostgreSQL the ordering runs in
        SQL and uses the HNSW index when one was built, which makes the
        result approximate.
        """
        if k <= 0:
            return []
        if self._dialect == "postgresql":
            await self._require_schema()
            stmt = postgres.nearest_statement(
                vector, k, exclude_id=exclude_id, dimensions=self._dimensions
            )
            async with self._lock.shared(), self._session() as session:
                result = await session.execute(stmt)
                return [(int(row[0]), float(row[1])) for row in result.all()]

        scored: list[tuple[int, float]] = []
        for entry in await self.candidates():
            if entry.id is None or entry.id == exclude_id:
                continue
            scored.append((entry.id, vectors.cosine_distance(vector, entry.content_vector)))
        scored.sort(key=lambda pair: (pair[1], pair[0]))
        return scored[:k]

    async def match(
        self,
        vector: Sequence[float],
        terms: Collection[str],
        *,
        scope_id: int = 0,
        max_distance: float,
    ) -> list[tuple[IndexEntry, float]]:
        """Return entries in scope that are near *vector* or contain any of *terms*.

        An entry is near when its content vector is within *max_distance*
        (cosine).  Each entry is paired with that distance; pairs are ordered
        by entry id.
        """
        if self._dialect == "postgresql":
            await self._require_schema()
            stmt = postgres.match_statement(
                vector,
                terms,
                scope_id=scope_id,
                max_distance=max_distance,
                dimensions=self._dimensions,
            )
            async with self._lock.shared(), self._session() as session:
                result = await session.execute(stmt)
                return [(row[0], float(row[1])) for row in result.all()]

        matched: list[tuple[IndexEntry, float]] = []
        for entry in await self.candidates(scope_id):
            distance = vectors.cosine_distance(vector, entry.content_vector)
            if distance < max_distance or any(t in entry.lexical_index for t in terms):
                matched.append((entry, distance))
        return matched

    async def delete(self, source_id: int, source_type: str = "pages") -> int:
        """Delete every language variant of a source; return the count."""
        await self._require_schema()
        stmt = delete(IndexEntry).where(
            IndexEntry.source_id == source_id,  # type: ignore[arg-type]
            IndexEntry.source_type == source_type,  # type: ignore[arg-type]
        )
        async with self._lock.shared(), self._session() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0

    async def clear(self) -> None:
        """Delete every entry.  Waits for in-flight row operations first."""
        await self._require_schema()
        async with self._lock.exclusive(), self._session() as session:
            await truncate_table(session, self._dialect, IndexEntry)
            await session.commit()
        logger.debug("Index cleared")

    async def record_query(self, log: QueryLog) -> None:
        """Append *log* to the query log table."""
        await self._require_schema()
        async with self._lock.shared(), self._session() as session:
            session.add(log)
            await session.commit()

    async def count(self) -> int:
        """Return the number of entries."""
        await self._require_schema()
        stmt = select(func.count()).select_from(IndexEntry)
        async with self._lock.shared(), self._session() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def count_query_logs(self) -> int:
        """Return the number of recorded queries."""
        await self._require_schema()
        stmt = select(func.count()).select_from(QueryLog)
        async with self._lock.shared(), self._session() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def close(self) -> None:
        """Dispose the engine if this store created it."""
        if self._owns_engine:
            await self._engine.dispose()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def dialect(self) -> str:
        return self._dialect

    @property
    def dimensions(self) -> int | None:
        return self._dimensions

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session, translating SQLAlchemy failures to :class:`StorageError`."""
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            msg = f"Index store operation failed: {e}"
            raise StorageError(msg) from e

    async def _require_schema(self) -> None:
        if self._schema_ready:
            return
        table_name: str = IndexEntry.__tablename__  # type: ignore[assignment]
        try:
            async with self._engine.connect() as conn:
                exists = await conn.run_sync(lambda c: inspect(c).has_table(table_name))
        except SQLAlchemyError as e:
            msg = f"Cannot reach index store: {e}"
            raise StorageError(msg) from e
        if not exists:
            msg = f"Table {table_name!r} does not exist; call ensure_schema() first"
            raise SchemaNotInitializedError(msg)
        self._schema_ready = True
