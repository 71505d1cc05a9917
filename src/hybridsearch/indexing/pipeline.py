"""IndexingPipeline — preprocess, embed and upsert documents into the index store."""

from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import TYPE_CHECKING, TypeVar

from hybridsearch.exceptions import ConfigurationError, SchemaNotInitializedError
from hybridsearch.indexing.boost import calculate_boost
from hybridsearch.models.entries import IndexEntry
from hybridsearch.text.preprocess import normalize_text
from hybridsearch.types import DEFAULT_SOURCE_TYPE, BatchResult, IndexResult

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Sequence

    from hybridsearch.cancellation import CancellationToken
    from hybridsearch.embeddings._client import EmbeddingClient
    from hybridsearch.sources import DocumentSource
    from hybridsearch.store.protocols import IndexStore
    from hybridsearch.types import SourceDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONCURRENCY: int = 4


def _content_hash(content: str, title: str) -> str:
    return hashlib.sha256((content + title).encode()).hexdigest()


def build_content(doc: SourceDocument) -> str:
    """Return the indexed content text: title followed by the body."""
    return normalize_text(f"{doc.title} {doc.body_text}")


class IndexingPipeline:
    """Turns :class:`SourceDocument` snapshots into :class:`IndexEntry` rows.

    Both embeddings are computed before the store is touched, so the upsert
    itself is a single fast statement.  Errors for one document are logged
    and reported in its :class:`IndexResult`; only fatal configuration
    errors (missing credential, missing schema) propagate.

    When *skip_unchanged* is set, documents whose content fingerprint
    matches the stored one are not re-embedded.
    """

    def __init__(
        self,
        store: IndexStore,
        embeddings: EmbeddingClient,
        *,
        skip_unchanged: bool = False,
    ) -> None:
        self._store = store
        self._embeddings = embeddings
        self._skip_unchanged = skip_unchanged

    # ------------------------------------------------------------------
    # Single documents
    # ------------------------------------------------------------------

    async def index_document(self, doc: SourceDocument) -> IndexResult:
        """Embed *doc* and upsert it; never raises for per-document failures."""
        try:
            content = build_content(doc)
            content_hash = _content_hash(content, doc.title)

            if self._skip_unchanged:
                existing = await self._store.get(doc.source_id, doc.source_type, doc.language_id)
                if existing is not None and existing.content_hash == content_hash:
                    return IndexResult(
                        success=True,
                        message="Content unchanged",
                        source_id=doc.source_id,
                        source_type=doc.source_type,
                        skipped=True,
                    )

            title_vector = await self._embeddings.embed(doc.title)
            content_vector = await self._embeddings.embed(content)

            entry = IndexEntry(
                source_id=doc.source_id,
                source_type=doc.source_type,
                parent_scope_id=doc.parent_scope_id,
                scope_id=doc.root_scope_id,
                language_id=doc.language_id,
                title=doc.title,
                content=content,
                url=doc.url,
                content_vector=content_vector,
                title_vector=title_vector,
                content_hash=content_hash,
                boost_factor=calculate_boost(doc.boost_hint, doc.title, content),
            )
            await self._store.upsert(entry)
        except (ConfigurationError, SchemaNotInitializedError):
            raise
        except Exception as e:
            logger.error(
                "Indexing failed for %s %d: %s",
                doc.source_type,
                doc.source_id,
                e,
                exc_info=True,
            )
            return IndexResult(
                success=False,
                message=f"Indexing failed: {e}",
                source_id=doc.source_id,
                source_type=doc.source_type,
            )

        return IndexResult(
            success=True,
            message="Indexed",
            source_id=doc.source_id,
            source_type=doc.source_type,
        )

    async def remove_document(self, source_id: int, source_type: str = DEFAULT_SOURCE_TYPE) -> int:
        """Delete every entry for the source; returns the number removed."""
        return await self._store.delete(source_id, source_type)

    async def clear_all(self) -> None:
        """Irreversibly empty the index."""
        await self._store.clear()

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    async def index_batch(
        self,
        documents: Iterable[SourceDocument],
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        cancel_token: CancellationToken | None = None,
    ) -> BatchResult:
        """Index *documents* with at most *concurrency* in flight."""
        return await self._run_batch(
            list(documents), self.index_document, concurrency, cancel_token
        )

    async def index_from_source(
        self,
        source: DocumentSource,
        source_ids: Sequence[int],
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        cancel_token: CancellationToken | None = None,
    ) -> BatchResult:
        """Load each id from *source* and index it; load failures become results."""

        async def load_and_index(source_id: int) -> IndexResult:
            try:
                doc = await source.get_document(source_id)
            except Exception as e:
                logger.error("Loading document %d failed: %s", source_id, e, exc_info=True)
                return IndexResult(
                    success=False,
                    message=f"Loading failed: {e}",
                    source_id=source_id,
                )
            if doc is None:
                return IndexResult(
                    success=False,
                    message="Document not found",
                    source_id=source_id,
                )
            return await self.index_document(doc)

        return await self._run_batch(list(source_ids), load_and_index, concurrency, cancel_token)

    async def _run_batch(
        self,
        items: list[T],
        worker: Callable[[T], Awaitable[IndexResult]],
        concurrency: int,
        cancel_token: CancellationToken | None,
    ) -> BatchResult:
        if concurrency < 1:
            msg = "concurrency must be at least 1"
            raise ValueError(msg)

        semaphore = asyncio.Semaphore(concurrency)
        slots: list[IndexResult | None] = [None] * len(items)

        async def run(i: int, item: T) -> None:
            async with semaphore:
                if cancel_token is not None and cancel_token.is_cancelled():
                    return
                slots[i] = await worker(item)

        tasks = [asyncio.create_task(run(i, item)) for i, item in enumerate(items)]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            # A fatal error stops the whole run; no document starts after it.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        batch = BatchResult(
            results=[r for r in slots if r is not None],
            cancelled=cancel_token is not None and cancel_token.is_cancelled(),
        )
        logger.debug(
            "Batch finished: %d succeeded, %d failed, cancelled=%s",
            batch.succeeded,
            batch.failed,
            batch.cancelled,
        )
        return batch
