"""HybridSearchEngine — blended semantic and lexical ranking over the index store."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from hybridsearch.models.entries import QueryLog
from hybridsearch.text import lexical
from hybridsearch.types import SearchQuery, SearchResult

if TYPE_CHECKING:
    from hybridsearch.embeddings._client import EmbeddingClient
    from hybridsearch.store.protocols import IndexStore

logger = logging.getLogger(__name__)

SEMANTIC_WEIGHT: float = 0.7
LEXICAL_WEIGHT: float = 0.3
MAX_SEMANTIC_DISTANCE: float = 0.5


class HybridSearchEngine:
    """Ranks index entries by a weighted blend of vector and keyword relevance.

    For every candidate in scope::

        combined = (1 - semantic_distance) * semantic_weight
                   + lexical_rank * lexical_weight

    A candidate is kept only if it is semantically close
    (``semantic_distance < max_distance``) or matches at least one query
    term.  The store applies that filter and computes the distance (in SQL
    on PostgreSQL).  Results are sorted by combined score, ties broken by
    ascending entry id, and truncated to the query limit.

    A failure to embed the query fails the whole search; there is no
    keyword-only fallback.
    """

    def __init__(
        self,
        store: IndexStore,
        embeddings: EmbeddingClient,
        *,
        semantic_weight: float = SEMANTIC_WEIGHT,
        lexical_weight: float = LEXICAL_WEIGHT,
        max_distance: float = MAX_SEMANTIC_DISTANCE,
        record_queries: bool = False,
    ) -> None:
        self._store = store
        self._embeddings = embeddings
        self._semantic_weight = semantic_weight
        self._lexical_weight = lexical_weight
        self._max_distance = max_distance
        self._record_queries = record_queries

    async def search(self, query: SearchQuery | str) -> list[SearchResult]:
        """Return ranked results for *query* (a plain string uses the defaults)."""
        if isinstance(query, str):
            query = SearchQuery(text=query)
        if query.limit <= 0:
            return []

        started = time.perf_counter()
        query_vector = await self._embeddings.embed(query.text)

        terms = set(lexical.tokenize(query.text))
        matches = await self._store.match(
            query_vector, terms, scope_id=query.scope_id, max_distance=self._max_distance
        )

        scored: list[SearchResult] = []
        for entry, distance in matches:
            lexical_rank = lexical.rank(query.text, entry.lexical_index)
            if distance >= self._max_distance and lexical_rank <= 0:
                continue
            combined = (
                (1.0 - distance) * self._semantic_weight + lexical_rank * self._lexical_weight
            )
            scored.append(
                SearchResult(
                    entry=entry,
                    semantic_distance=distance,
                    lexical_rank=lexical_rank,
                    combined_score=combined,
                )
            )

        scored.sort(key=lambda r: (-r.combined_score, r.entry.id or 0))
        results = scored[: query.limit]

        if self._record_queries:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            await self._record(query, query_vector, len(results), elapsed_ms)
        return results

    async def _record(
        self,
        query: SearchQuery,
        query_vector: list[float],
        results_count: int,
        elapsed_ms: int,
    ) -> None:
        log = QueryLog(
            query_text=query.text,
            query_vector=query_vector,
            scope_id=query.scope_id,
            results_count=results_count,
            search_time_ms=elapsed_ms,
        )
        try:
            await self._store.record_query(log)
        except Exception:
            logger.warning("Failed to record query %r", query.text, exc_info=True)
