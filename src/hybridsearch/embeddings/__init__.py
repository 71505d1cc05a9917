"""Embedding layer — provider protocol, providers, chunk-averaging client."""

from hybridsearch.embeddings._client import ChunkEmbedding, EmbeddingClient
from hybridsearch.embeddings.protocols import EmbeddingProvider
from hybridsearch.embeddings.providers.openai import OpenAIEmbedding

__all__ = [
    "ChunkEmbedding",
    "EmbeddingClient",
    "EmbeddingProvider",
    "OpenAIEmbedding",
]
