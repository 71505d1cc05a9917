"""Tests for SimilarityEngine and the neighbor indexes."""

from __future__ import annotations

import pytest

from hybridsearch.exceptions import DimensionMismatchError
from hybridsearch.indexing import IndexingPipeline
from hybridsearch.search import (
    ExactNeighborIndex,
    NeighborIndex,
    SimilarityEngine,
    UsearchNeighborIndex,
)
from hybridsearch.types import SourceDocument

_DOCS = [
    SourceDocument(source_id=1, title="Apple", body_text="banana cherry"),
    SourceDocument(source_id=2, title="Apple", body_text="banana grape"),
    SourceDocument(source_id=3, title="Rocket", body_text="engine fuel"),
]


class _RecordingNeighborIndex(ExactNeighborIndex):
    """Exact index that counts refreshes and can run a hook mid-refresh."""

    def __init__(self, store, *, fail_first=False):
        super().__init__(store)
        self.refreshes = 0
        self.during_refresh = None
        self._fail_first = fail_first

    async def refresh(self, store):
        self.refreshes += 1
        if self.during_refresh is not None:
            self.during_refresh()
        if self._fail_first and self.refreshes == 1:
            msg = "index unavailable"
            raise RuntimeError(msg)
        await super().refresh(store)


@pytest.fixture
async def indexed(store, embeddings):
    pipeline = IndexingPipeline(store, embeddings)
    for doc in _DOCS:
        await pipeline.index_document(doc)
    return pipeline


@pytest.fixture(params=["exact", "usearch"])
def similarity(request, store, provider) -> SimilarityEngine:
    if request.param == "exact":
        return SimilarityEngine(store)
    return SimilarityEngine(store, UsearchNeighborIndex(dimension=provider.dimensions))


# ==================================================================
# SimilarityEngine
# ==================================================================


class TestFindSimilar:
    async def test_nearest_first(self, indexed, similarity):
        results = await similarity.find_similar(1)
        assert [r.entry.source_id for r in results] == [2, 3]
        assert results[0].distance == pytest.approx(1 - 2 / 3, abs=1e-4)
        assert results[1].distance == pytest.approx(1.0, abs=1e-4)

    async def test_excludes_self(self, indexed, similarity):
        results = await similarity.find_similar(2, limit=10)
        assert 2 not in {r.entry.source_id for r in results}

    async def test_limit(self, indexed, similarity):
        results = await similarity.find_similar(1, limit=1)
        assert [r.entry.source_id for r in results] == [2]

    async def test_missing_entry(self, indexed, similarity):
        assert await similarity.find_similar(404) == []

    async def test_zero_limit(self, indexed, similarity):
        assert await similarity.find_similar(1, limit=0) == []

    async def test_stale_index_is_refreshed(self, indexed, similarity):
        assert [r.entry.source_id for r in await similarity.find_similar(1)] == [2, 3]

        await indexed.remove_document(2)
        similarity.mark_stale()

        assert [r.entry.source_id for r in await similarity.find_similar(1)] == [3]

    async def test_mutation_during_refresh_triggers_another_refresh(self, indexed, store):
        neighbors = _RecordingNeighborIndex(store)
        similarity = SimilarityEngine(store, neighbors)
        neighbors.during_refresh = similarity.mark_stale

        await similarity.find_similar(1)
        neighbors.during_refresh = None
        await similarity.find_similar(1)
        await similarity.find_similar(1)

        assert neighbors.refreshes == 2

    async def test_failed_refresh_is_retried(self, indexed, store):
        neighbors = _RecordingNeighborIndex(store, fail_first=True)
        similarity = SimilarityEngine(store, neighbors)

        with pytest.raises(RuntimeError):
            await similarity.find_similar(1)
        results = await similarity.find_similar(1)

        assert neighbors.refreshes == 2
        assert [r.entry.source_id for r in results] == [2, 3]

    def test_default_is_exact(self, store):
        assert isinstance(SimilarityEngine(store).neighbor_index, ExactNeighborIndex)


# ==================================================================
# Neighbor indexes
# ==================================================================


class TestExactNeighborIndex:
    def test_satisfies_protocol(self, store):
        assert isinstance(ExactNeighborIndex(store), NeighborIndex)

    async def test_ties_by_entry_id(self, store, embeddings):
        pipeline = IndexingPipeline(store, embeddings)
        for source_id in (7, 3):
            await pipeline.index_document(
                SourceDocument(source_id=source_id, title="Twin", body_text="same")
            )
        twin_7 = await store.get(7)
        twin_3 = await store.get(3)
        assert twin_7 is not None and twin_3 is not None

        pairs = await ExactNeighborIndex(store).nearest(twin_7.content_vector, 5)

        assert [entry_id for entry_id, _ in pairs] == [twin_7.id, twin_3.id]


class TestUsearchNeighborIndex:
    def test_satisfies_protocol(self):
        assert isinstance(UsearchNeighborIndex(dimension=3), NeighborIndex)

    async def test_add_and_nearest(self):
        index = UsearchNeighborIndex(dimension=3)
        index.add(1, [1.0, 0.0, 0.0])
        index.add(2, [0.9, 0.1, 0.0])
        index.add(3, [0.0, 0.0, 1.0])
        assert len(index) == 3

        pairs = await index.nearest([1.0, 0.0, 0.0], 2)

        assert [entry_id for entry_id, _ in pairs] == [1, 2]
        assert pairs[0][1] == pytest.approx(0.0, abs=1e-4)

    async def test_exclude_id(self):
        index = UsearchNeighborIndex(dimension=3)
        index.add(1, [1.0, 0.0, 0.0])
        index.add(2, [0.9, 0.1, 0.0])
        index.add(3, [0.0, 0.0, 1.0])

        pairs = await index.nearest([1.0, 0.0, 0.0], 2, exclude_id=1)

        assert [entry_id for entry_id, _ in pairs] == [2, 3]

    async def test_remove(self):
        index = UsearchNeighborIndex(dimension=3)
        index.add(1, [1.0, 0.0, 0.0])
        index.add(2, [0.0, 1.0, 0.0])
        assert index.remove(1)
        assert not index.remove(1)
        assert len(index) == 1
        pairs = await index.nearest([1.0, 0.0, 0.0], 5)
        assert [entry_id for entry_id, _ in pairs] == [2]

    def test_add_replaces(self):
        index = UsearchNeighborIndex(dimension=3)
        index.add(1, [1.0, 0.0, 0.0])
        index.add(1, [0.0, 1.0, 0.0])
        assert len(index) == 1

    async def test_empty(self):
        assert await UsearchNeighborIndex(dimension=3).nearest([1.0, 0.0, 0.0], 5) == []

    def test_dimension_mismatch(self):
        index = UsearchNeighborIndex(dimension=3)
        with pytest.raises(DimensionMismatchError):
            index.add(1, [1.0, 0.0])

    async def test_refresh_from_store(self, indexed, store, provider):
        index = UsearchNeighborIndex(dimension=provider.dimensions)
        await index.refresh(store)
        assert len(index) == len(_DOCS)
