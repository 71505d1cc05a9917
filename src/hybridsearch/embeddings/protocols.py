"""EmbeddingProvider protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Async protocol for text-to-vector embedding.

    Implementations return one fixed-dimension float vector per call and
    raise :class:`~hybridsearch.exceptions.EmbeddingError` on any provider
    or transport failure.
    """

    async def embed(self, text: str) -> list[float]:
        """Embed a single text string into a vector."""
        ...

    @property
    def dimensions(self) -> int:
        """Number of dimensions in the embedding vectors."""
        ...

    @property
    def model_name(self) -> str:
        """Name of the embedding model."""
        ...
