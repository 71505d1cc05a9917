"""IndexStore protocol — persistence contract consumed by the pipeline and engines."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from hybridsearch.models.entries import IndexEntry, QueryLog


@runtime_checkable
class IndexStore(Protocol):
    """Keyed storage of :class:`IndexEntry` rows.

    Entries are keyed by ``(source_id, source_type, language_id)``.  The
    store owns the lexical index: it is recomputed from title and content on
    every write, whatever the caller passed.
    """

    async def ensure_schema(self) -> None:
        """Create the index tables if they do not exist."""
        ...

    async def upsert(self, entry: IndexEntry) -> None:
        """Insert *entry*, or atomically replace the row with the same key."""
        ...

    async def get(
        self,
        source_id: int,
        source_type: str = "pages",
        language_id: int = 0,
    ) -> IndexEntry | None:
        """Return the entry for the key, or ``None``."""
        ...

    async def get_many(self, ids: Sequence[int]) -> list[IndexEntry]:
        """Return entries by primary key, in the order of *ids*; unknown ids are skipped."""
        ...

    async def candidates(self, scope_id: int = 0) -> list[IndexEntry]:
        """Return entries in *scope_id* (all entries when 0), ordered by id."""
        ...

    async def nearest(
        self,
        vector: Sequence[float],
        k: int,
        *,
        exclude_id: int | None = None,
    ) -> list[tuple[int, float]]:
        """Return up to *k* ``(entry_id, cosine_distance)`` pairs by content vector, closest first."""
        ...

    async def match(
        self,
        vector: Sequence[float],
        terms: Collection[str],
        *,
        scope_id: int = 0,
        max_distance: float,
    ) -> list[tuple[IndexEntry, float]]:
        """Return ``(entry, cosine_distance)`` for entries within *max_distance* or holding a term."""
        ...

    async def delete(self, source_id: int, source_type: str = "pages") -> int:
        """Delete every language variant of a source; return the count."""
        ...

    async def clear(self) -> None:
        """Irreversibly delete every entry."""
        ...

    async def record_query(self, log: QueryLog) -> None:
        """Append a query log row."""
        ...

    async def count(self) -> int:
        """Return the number of entries."""
        ...

    async def close(self) -> None:
        """Release connections."""
        ...
