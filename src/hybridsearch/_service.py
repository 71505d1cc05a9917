"""HybridSearch — synchronous wrapper around :class:`HybridSearchAsync`."""

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING, Any

from hybridsearch._service_async import HybridSearchAsync
from hybridsearch.types import DEFAULT_SOURCE_TYPE

if TYPE_CHECKING:
    from hybridsearch.cancellation import CancellationToken
    from hybridsearch.config import HybridSearchConfig
    from hybridsearch.embeddings._client import EmbeddingClient
    from hybridsearch.embeddings.protocols import EmbeddingProvider
    from hybridsearch.sources import DocumentSource
    from hybridsearch.store.protocols import IndexStore
    from hybridsearch.types import (
        BatchResult,
        IndexResult,
        SearchResult,
        SimilarResult,
        SourceDocument,
    )


class HybridSearch:
    """Synchronous facade for indexing and search.

    All work runs on a private event loop in a daemon thread, so the
    instance can be shared by plain threaded code (request handlers, change
    listeners, cron jobs).  Calls from several threads run concurrently on
    that loop; a long :meth:`index_all` can be stopped from another thread
    with a :class:`~hybridsearch.cancellation.CancellationToken`.

    Usage::

        with HybridSearch.from_config(HybridSearchConfig.from_env(), source=src) as hs:
            hs.ensure_schema()
            hs.index_all()
            for hit in hs.search("opening hours"):
                print(hit.combined_score, hit.entry.title)
    """

    def __init__(self, store: IndexStore, embeddings: EmbeddingClient, **kwargs: Any) -> None:
        self._start_loop()
        try:
            self._async = HybridSearchAsync(store, embeddings, **kwargs)
        except BaseException:
            self._stop_loop()
            raise

    @classmethod
    def from_config(
        cls,
        config: HybridSearchConfig,
        *,
        source: DocumentSource | None = None,
        provider: EmbeddingProvider | None = None,
        **kwargs: Any,
    ) -> HybridSearch:
        """Build a facade from *config*; see :meth:`HybridSearchAsync.from_config`."""
        self = cls.__new__(cls)
        self._start_loop()
        try:
            self._async = HybridSearchAsync.from_config(
                config, source=source, provider=provider, **kwargs
            )
        except BaseException:
            self._stop_loop()
            raise
        return self

    def _start_loop(self) -> None:
        self._closed = False
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._thread.start()

    def _stop_loop(self) -> None:
        self._closed = True
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        self._loop.close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _run(self, coro: Any) -> Any:
        """Submit *coro* to the private loop and block for the result."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close collaborators, stop the event loop and join the thread."""
        if self._closed:
            return
        self._closed = True

        try:
            self._run(self._async.close())
        finally:
            self._stop_loop()

    def __enter__(self) -> HybridSearch:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Wrappers (sync)
    # ------------------------------------------------------------------

    def ensure_schema(self) -> None:
        """Create the index tables if they do not exist."""
        self._run(self._async.ensure_schema())

    def index_one(self, source_id: int) -> IndexResult:
        """Load and index one document."""
        return self._run(self._async.index_one(source_id))

    def index_document(self, doc: SourceDocument) -> IndexResult:
        """Index an already loaded document."""
        return self._run(self._async.index_document(doc))

    def index_all(
        self,
        scope_id: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> BatchResult:
        """Index every eligible document."""
        return self._run(self._async.index_all(scope_id, cancel_token=cancel_token))

    def reindex_all(
        self,
        scope_id: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> BatchResult:
        """Clear and rebuild the index."""
        return self._run(self._async.reindex_all(scope_id, cancel_token=cancel_token))

    def remove(self, source_id: int, source_type: str = DEFAULT_SOURCE_TYPE) -> int:
        """Remove a document from the index."""
        return self._run(self._async.remove(source_id, source_type))

    def clear_index(self) -> None:
        """Irreversibly empty the index."""
        self._run(self._async.clear_index())

    def search(self, text: str, scope_id: int = 0, limit: int = 10) -> list[SearchResult]:
        """Hybrid search for *text*."""
        return self._run(self._async.search(text, scope_id, limit))

    def find_similar(
        self,
        source_id: int,
        limit: int = 5,
        *,
        source_type: str = DEFAULT_SOURCE_TYPE,
        language_id: int = 0,
    ) -> list[SimilarResult]:
        """Entries whose content is closest to *source_id*."""
        return self._run(
            self._async.find_similar(
                source_id, limit, source_type=source_type, language_id=language_id
            )
        )
