"""Tests for HybridSearch — the synchronous facade."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pytest

from hybridsearch import HybridSearch, HybridSearchConfig
from hybridsearch.cancellation import CancellationToken
from hybridsearch.embeddings import EmbeddingClient
from hybridsearch.exceptions import (
    ConfigurationError,
    DocumentNotFoundError,
    SchemaNotInitializedError,
)
from hybridsearch.sources import StaticDocumentSource
from hybridsearch.store import DatabaseIndexStore
from hybridsearch.types import SourceDocument

if TYPE_CHECKING:
    from collections.abc import Iterator

_DOCS = [
    SourceDocument(source_id=1, title="Home", body_text="Welcome to our company"),
    SourceDocument(source_id=2, title="Contact", body_text="Phone: 123"),
    SourceDocument(source_id=3, title="Team", body_text="Our company team"),
]


@pytest.fixture
def hs(db_url, provider) -> Iterator[HybridSearch]:
    facade = HybridSearch(
        DatabaseIndexStore.from_url(db_url),
        EmbeddingClient(provider),
        source=StaticDocumentSource(_DOCS),
    )
    facade.ensure_schema()
    yield facade
    facade.close()


class TestHybridSearchConstruction:
    def test_context_manager(self, db_url, provider):
        with HybridSearch(DatabaseIndexStore.from_url(db_url), EmbeddingClient(provider)) as facade:
            facade.ensure_schema()
        assert facade._closed

    def test_close_idempotent(self, db_url, provider):
        facade = HybridSearch(DatabaseIndexStore.from_url(db_url), EmbeddingClient(provider))
        facade.close()
        facade.close()

    def test_from_config(self, db_url, provider):
        config = HybridSearchConfig(database_url=db_url)
        source = StaticDocumentSource(_DOCS)
        with HybridSearch.from_config(config, source=source, provider=provider) as facade:
            facade.ensure_schema()
            assert facade.index_all().succeeded == 3

    def test_schema_required(self, db_url, provider):
        with HybridSearch(
            DatabaseIndexStore.from_url(db_url),
            EmbeddingClient(provider),
            source=StaticDocumentSource(_DOCS),
        ) as facade:
            with pytest.raises(SchemaNotInitializedError):
                facade.index_one(1)

    def test_failed_from_config_stops_loop_thread(self, db_url, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("HYBRIDSEARCH_OPENAI_API_KEY", raising=False)
        config = HybridSearchConfig(database_url=db_url)
        before = set(threading.enumerate())

        with pytest.raises(ConfigurationError):
            HybridSearch.from_config(config)

        assert set(threading.enumerate()) <= before

    def test_failed_construction_stops_loop_thread(self, db_url, provider):
        before = set(threading.enumerate())

        with pytest.raises(TypeError):
            HybridSearch(
                DatabaseIndexStore.from_url(db_url),
                EmbeddingClient(provider),
                unknown_option=True,
            )

        assert set(threading.enumerate()) <= before


class TestHybridSearchOperations:
    def test_index_and_search(self, hs):
        batch = hs.index_all()
        assert batch.succeeded == 3
        results = hs.search("welcome company")
        assert results[0].entry.source_id == 1

    def test_index_one_unknown(self, hs):
        with pytest.raises(DocumentNotFoundError):
            hs.index_one(404)

    def test_index_document(self, hs):
        assert hs.index_document(SourceDocument(source_id=9, title="Extra")).success

    def test_remove(self, hs):
        hs.index_all()
        assert hs.remove(1) == 1
        assert all(r.entry.source_id != 1 for r in hs.search("welcome company"))

    def test_clear_and_reindex(self, hs):
        hs.index_all()
        hs.clear_index()
        assert hs.search("welcome company") == []
        assert hs.reindex_all().succeeded == 3
        assert hs.search("welcome company")

    def test_find_similar(self, hs):
        hs.index_all()
        results = hs.find_similar(1, limit=1)
        assert [r.entry.source_id for r in results] == [3]

    def test_cancelled_index_all(self, hs):
        token = CancellationToken()
        token.cancel()
        batch = hs.index_all(cancel_token=token)
        assert batch.cancelled
        assert batch.results == []

    def test_calls_from_several_threads(self, hs):
        hs.index_all()
        errors: list[BaseException] = []

        def worker():
            try:
                for _ in range(3):
                    assert hs.search("welcome company")
            except BaseException as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
