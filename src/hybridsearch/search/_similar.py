"""SimilarityEngine — nearest neighbors of an indexed entry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hybridsearch.search.neighbors import ExactNeighborIndex
from hybridsearch.types import DEFAULT_SOURCE_TYPE, SimilarResult

if TYPE_CHECKING:
    from hybridsearch.search.neighbors import NeighborIndex
    from hybridsearch.store.protocols import IndexStore


class SimilarityEngine:
    """Finds the entries whose content is closest to a given entry.

    Uses an exact scan unless a different :class:`NeighborIndex` is
    supplied.  Call :meth:`mark_stale` after the store changes so that
    precomputed indexes are refreshed before the next lookup.
    """

    def __init__(self, store: IndexStore, neighbor_index: NeighborIndex | None = None) -> None:
        self._store = store
        self._neighbors: NeighborIndex = neighbor_index or ExactNeighborIndex(store)
        self._stale = True

    def mark_stale(self) -> None:
        """Flag the neighbor index for refresh before the next query."""
        self._stale = True

    async def find_similar(
        self,
        source_id: int,
        limit: int = 5,
        *,
        source_type: str = DEFAULT_SOURCE_TYPE,
        language_id: int = 0,
    ) -> list[SimilarResult]:
        """Return up to *limit* neighbors of the entry, closest first.

        Returns an empty list when the entry is not indexed.
        """
        entry = await self._store.get(source_id, source_type, language_id)
        if entry is None or limit <= 0:
            return []

        if self._stale:
            # Cleared first so a mark_stale() during the refresh is kept.
            self._stale = False
            try:
                await self._neighbors.refresh(self._store)
            except BaseException:
                self._stale = True
                raise

        pairs = await self._neighbors.nearest(entry.content_vector, limit, exclude_id=entry.id)
        entries = {e.id: e for e in await self._store.get_many([entry_id for entry_id, _ in pairs])}
        return [
            SimilarResult(entry=entries[entry_id], distance=distance)
            for entry_id, distance in pairs
            if entry_id in entries
        ]

    @property
    def neighbor_index(self) -> NeighborIndex:
        return self._neighbors
