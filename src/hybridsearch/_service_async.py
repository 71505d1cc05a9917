"""HybridSearchAsync — async facade wiring store, embeddings, pipeline and engines."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from hybridsearch.embeddings._client import EmbeddingClient
from hybridsearch.embeddings.providers.openai import OpenAIEmbedding
from hybridsearch.exceptions import ConfigurationError, DocumentNotFoundError
from hybridsearch.indexing.pipeline import DEFAULT_CONCURRENCY, IndexingPipeline
from hybridsearch.search._hybrid import (
    LEXICAL_WEIGHT,
    MAX_SEMANTIC_DISTANCE,
    SEMANTIC_WEIGHT,
    HybridSearchEngine,
)
from hybridsearch.search._similar import SimilarityEngine
from hybridsearch.store.database import DatabaseIndexStore
from hybridsearch.types import DEFAULT_SOURCE_TYPE, SearchQuery

if TYPE_CHECKING:
    from hybridsearch.cancellation import CancellationToken
    from hybridsearch.config import HybridSearchConfig
    from hybridsearch.embeddings.protocols import EmbeddingProvider
    from hybridsearch.search.neighbors import NeighborIndex
    from hybridsearch.sources import DocumentSource
    from hybridsearch.store.protocols import IndexStore
    from hybridsearch.types import (
        BatchResult,
        IndexResult,
        SearchResult,
        SimilarResult,
        SourceDocument,
    )

logger = logging.getLogger(__name__)


class HybridSearchAsync:
    """Async facade over indexing and search.

    Every collaborator is passed in explicitly; nothing is looked up from a
    global registry.  Use :meth:`from_config` for the common wiring of an
    OpenAI provider and a database store.

    Usage::

        store = DatabaseIndexStore.from_url("sqlite+aiosqlite:///index.db")
        embeddings = EmbeddingClient(OpenAIEmbedding())
        async with HybridSearchAsync(store, embeddings, source=my_source) as hs:
            await hs.ensure_schema()
            await hs.index_all()
            results = await hs.search("opening hours")
    """

    def __init__(
        self,
        store: IndexStore,
        embeddings: EmbeddingClient,
        *,
        source: DocumentSource | None = None,
        semantic_weight: float = SEMANTIC_WEIGHT,
        lexical_weight: float = LEXICAL_WEIGHT,
        max_distance: float = MAX_SEMANTIC_DISTANCE,
        record_queries: bool = False,
        batch_concurrency: int = DEFAULT_CONCURRENCY,
        skip_unchanged: bool = False,
        neighbor_index: NeighborIndex | None = None,
    ) -> None:
        self._closed = False
        self._store = store
        self._embeddings = embeddings
        self._source = source
        self._batch_concurrency = batch_concurrency

        self._pipeline = IndexingPipeline(store, embeddings, skip_unchanged=skip_unchanged)
        self._search_engine = HybridSearchEngine(
            store,
            embeddings,
            semantic_weight=semantic_weight,
            lexical_weight=lexical_weight,
            max_distance=max_distance,
            record_queries=record_queries,
        )
        self._similarity = SimilarityEngine(store, neighbor_index)

    @classmethod
    def from_config(
        cls,
        config: HybridSearchConfig,
        *,
        source: DocumentSource | None = None,
        provider: EmbeddingProvider | None = None,
        **kwargs: Any,
    ) -> HybridSearchAsync:
        """Build a facade from *config*; *provider* defaults to OpenAI."""
        if provider is None:
            provider = OpenAIEmbedding(
                model=config.embedding_model,
                dimensions=config.dimensions,
                api_key=config.openai_api_key,
                timeout=config.request_timeout,
            )
        embeddings = EmbeddingClient(
            provider,
            long_text_threshold=config.long_text_threshold,
            max_chunk_size=config.max_chunk_size,
            overlap_size=config.overlap_size,
        )
        store = DatabaseIndexStore.from_url(config.database_url, dimensions=provider.dimensions)
        return cls(
            store,
            embeddings,
            source=source,
            semantic_weight=config.semantic_weight,
            lexical_weight=config.lexical_weight,
            max_distance=config.max_distance,
            record_queries=config.record_queries,
            batch_concurrency=config.batch_concurrency,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def ensure_schema(self) -> None:
        """Create the index tables if they do not exist."""
        await self._store.ensure_schema()

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    async def index_one(self, source_id: int) -> IndexResult:
        """Load *source_id* from the document source and index it."""
        source = self._require_source()
        doc = await source.get_document(source_id)
        if doc is None:
            msg = f"Document {source_id} not found"
            raise DocumentNotFoundError(msg)
        return await self.index_document(doc)

    async def index_document(self, doc: SourceDocument) -> IndexResult:
        """Index an already loaded *doc*."""
        result = await self._pipeline.index_document(doc)
        self._similarity.mark_stale()
        return result

    async def index_all(
        self,
        scope_id: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> BatchResult:
        """Index every eligible document, optionally under *scope_id*."""
        source = self._require_source()
        source_ids = await source.list_documents(scope_id)
        logger.debug("Indexing %d documents (scope=%s)", len(source_ids), scope_id)
        try:
            return await self._pipeline.index_from_source(
                source,
                source_ids,
                concurrency=self._batch_concurrency,
                cancel_token=cancel_token,
            )
        finally:
            self._similarity.mark_stale()

    async def reindex_all(
        self,
        scope_id: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> BatchResult:
        """Clear the index, then index every eligible document."""
        self._require_source()
        await self.clear_index()
        return await self.index_all(scope_id, cancel_token=cancel_token)

    async def remove(self, source_id: int, source_type: str = DEFAULT_SOURCE_TYPE) -> int:
        """Remove every entry of *source_id*; returns the number removed."""
        removed = await self._pipeline.remove_document(source_id, source_type)
        self._similarity.mark_stale()
        return removed

    async def clear_index(self) -> None:
        """Irreversibly empty the index."""
        await self._pipeline.clear_all()
        self._similarity.mark_stale()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, text: str, scope_id: int = 0, limit: int = 10) -> list[SearchResult]:
        """Hybrid search for *text*."""
        return await self._search_engine.search(
            SearchQuery(text=text, scope_id=scope_id, limit=limit)
        )

    async def find_similar(
        self,
        source_id: int,
        limit: int = 5,
        *,
        source_type: str = DEFAULT_SOURCE_TYPE,
        language_id: int = 0,
    ) -> list[SimilarResult]:
        """Entries whose content is closest to *source_id*."""
        return await self._similarity.find_similar(
            source_id, limit, source_type=source_type, language_id=language_id
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the store and the embedding provider."""
        if self._closed:
            return
        self._closed = True
        await self._store.close()
        close_fn = getattr(self._embeddings.provider, "close", None)
        if close_fn is not None:
            await close_fn()

    async def __aenter__(self) -> HybridSearchAsync:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def store(self) -> IndexStore:
        return self._store

    @property
    def embeddings(self) -> EmbeddingClient:
        return self._embeddings

    @property
    def pipeline(self) -> IndexingPipeline:
        return self._pipeline

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_source(self) -> DocumentSource:
        if self._source is None:
            msg = "No document source configured"
            raise ConfigurationError(msg)
        return self._source
