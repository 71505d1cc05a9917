"""EmbeddingClient — preprocessing, chunk averaging and normalization around a provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from hybridsearch import vectors
from hybridsearch.exceptions import EmbeddingError
from hybridsearch.text.chunker import DEFAULT_MAX_CHUNK_SIZE, DEFAULT_OVERLAP_SIZE, iter_chunks
from hybridsearch.text.preprocess import normalize_text

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hybridsearch.embeddings.protocols import EmbeddingProvider

logger = logging.getLogger(__name__)

LONG_TEXT_THRESHOLD: int = 32000
"""Normalized length above which text is embedded chunk by chunk."""


@dataclass(frozen=True, slots=True)
class ChunkEmbedding:
    """Embedding of one chunk of a longer text.

    Attributes:
        chunk_index: 0-based position of the chunk.
        text: The chunk content that was embedded.
        embedding: Unit-normalized vector for *text*.
    """

    chunk_index: int
    text: str
    embedding: list[float]


class EmbeddingClient:
    """Turns arbitrary text into a single unit-length embedding.

    Short text is embedded in one provider call.  Text whose normalized
    length exceeds *long_text_threshold* is chunked, each chunk is embedded
    independently, and the successful chunk vectors are averaged and
    re-normalized.  A failing chunk is logged and left out of the average;
    the call fails only when no chunk succeeds.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        *,
        long_text_threshold: int = LONG_TEXT_THRESHOLD,
        max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
        overlap_size: int = DEFAULT_OVERLAP_SIZE,
    ) -> None:
        self._provider = provider
        self._long_text_threshold = long_text_threshold
        self._max_chunk_size = max_chunk_size
        self._overlap_size = overlap_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> list[float]:
        """Return the normalized embedding of *text*."""
        text = normalize_text(text)
        if len(text) > self._long_text_threshold:
            chunk_embeddings = await self.embed_chunks(text)
            return self.average([c.embedding for c in chunk_embeddings])
        return await self._embed_single(text)

    async def embed_chunks(self, text: str) -> list[ChunkEmbedding]:
        """Embed every chunk of *text*, skipping chunks whose request fails."""
        results: list[ChunkEmbedding] = []
        for chunk in iter_chunks(text, self._max_chunk_size, self._overlap_size):
            try:
                embedding = await self._embed_single(chunk.text)
            except EmbeddingError as e:
                logger.warning("Failed to embed chunk %d: %s", chunk.index, e)
                continue
            results.append(
                ChunkEmbedding(chunk_index=chunk.index, text=chunk.text, embedding=embedding)
            )
        return results

    @staticmethod
    def average(embeddings: Sequence[Sequence[float]]) -> list[float]:
        """Element-wise mean of *embeddings*, re-normalized to unit length."""
        if not embeddings:
            msg = "No embeddings provided for averaging"
            raise EmbeddingError(msg)
        return vectors.normalize(vectors.mean(embeddings))

    @staticmethod
    def best_matching_chunk(
        chunk_embeddings: Sequence[ChunkEmbedding],
        query_vector: Sequence[float],
    ) -> tuple[ChunkEmbedding, float] | None:
        """Return the chunk most similar to *query_vector* and its similarity."""
        best: tuple[ChunkEmbedding, float] | None = None
        for chunk in chunk_embeddings:
            similarity = vectors.cosine_similarity(chunk.embedding, query_vector)
            if best is None or similarity > best[1]:
                best = (chunk, similarity)
        return best

    @property
    def provider(self) -> EmbeddingProvider:
        """Return the underlying :class:`EmbeddingProvider`."""
        return self._provider

    @property
    def dimensions(self) -> int:
        """Return the provider's embedding dimensionality."""
        return self._provider.dimensions

    @property
    def model_name(self) -> str:
        """Return the provider's model name."""
        return self._provider.model_name

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _embed_single(self, text: str) -> list[float]:
        vector = await self._provider.embed(text)
        if not vector:
            msg = "Embedding provider returned an empty vector"
            raise EmbeddingError(msg)
        return vectors.normalize(vector)
