"""Nearest-neighbor indexes over entry content vectors.

:class:`ExactNeighborIndex` asks the store on every query and is always
consistent.  :class:`UsearchNeighborIndex` keeps an in-process HNSW graph
(usearch) that must be refreshed after the store changes; it trades a
little recall for sub-linear queries on large corpora.  Both satisfy
:class:`NeighborIndex`, so :class:`SimilarityEngine` works with either.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np
from usearch.index import Index

from hybridsearch.exceptions import DimensionMismatchError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from hybridsearch.models.entries import IndexEntry
    from hybridsearch.store.protocols import IndexStore


@runtime_checkable
class NeighborIndex(Protocol):
    """Finds the entries whose content vectors are closest to a query vector."""

    async def refresh(self, store: IndexStore) -> None:
        """Bring the index up to date with *store*."""
        ...

    async def nearest(
        self,
        vector: Sequence[float],
        k: int,
        *,
        exclude_id: int | None = None,
    ) -> list[tuple[int, float]]:
        """Return up to *k* ``(entry_id, cosine_distance)`` pairs, closest first."""
        ...


class ExactNeighborIndex:
    """Asks the store for the closest entries on every query.

    SQLite stores scan every entry; PostgreSQL stores rank in SQL.
    """

    def __init__(self, store: IndexStore) -> None:
        self._store = store

    async def refresh(self, store: IndexStore) -> None:
        """No-op; every query reads the store directly."""
        self._store = store

    async def nearest(
        self,
        vector: Sequence[float],
        k: int,
        *,
        exclude_id: int | None = None,
    ) -> list[tuple[int, float]]:
        return await self._store.nearest(vector, k, exclude_id=exclude_id)


class UsearchNeighborIndex:
    """Approximate neighbor index backed by a usearch HNSW graph.

    Keys are entry primary keys.  Thread-safe via :class:`threading.Lock`.
    """

    def __init__(self, *, dimension: int) -> None:
        self._dimension = dimension
        self._index = Index(ndim=dimension, metric="cos", dtype="f32")
        self._lock = threading.Lock()
        self._keys: set[int] = set()

    async def refresh(self, store: IndexStore) -> None:
        """Rebuild the graph from every entry in *store*."""
        self.rebuild(await store.candidates())

    async def nearest(
        self,
        vector: Sequence[float],
        k: int,
        *,
        exclude_id: int | None = None,
    ) -> list[tuple[int, float]]:
        if k <= 0 or not self._keys:
            return []
        query = self._as_array(vector)
        count = min(k + (1 if exclude_id is not None else 0), len(self._keys))

        with self._lock:
            matches = self._index.search(query, count)

        pairs = [
            (int(key), float(distance))
            for key, distance in zip(matches.keys.tolist(), matches.distances.tolist(), strict=True)
            if int(key) != exclude_id
        ]
        pairs.sort(key=lambda pair: (pair[1], pair[0]))
        return pairs[:k]

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def add(self, entry_id: int, vector: Sequence[float]) -> None:
        """Insert or replace the vector for *entry_id*."""
        arr = self._as_array(vector)
        with self._lock:
            if entry_id in self._keys:
                self._index.remove(entry_id)
            self._index.add(entry_id, arr)
            self._keys.add(entry_id)

    def remove(self, entry_id: int) -> bool:
        """Remove *entry_id*; returns True if it was present."""
        with self._lock:
            if entry_id not in self._keys:
                return False
            self._index.remove(entry_id)
            self._keys.discard(entry_id)
            return True

    def rebuild(self, entries: Iterable[IndexEntry]) -> None:
        """Replace the whole graph with *entries*."""
        with self._lock:
            self._index = Index(ndim=self._dimension, metric="cos", dtype="f32")
            self._keys = set()
        for entry in entries:
            if entry.id is not None:
                self.add(entry.id, entry.content_vector)

    def __len__(self) -> int:
        return len(self._keys)

    def _as_array(self, vector: Sequence[float]) -> np.ndarray:
        if len(vector) != self._dimension:
            msg = f"Vector dimension {len(vector)} does not match index dimension {self._dimension}"
            raise DimensionMismatchError(msg)
        return np.asarray(vector, dtype=np.float32)
