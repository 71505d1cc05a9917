"""Embedding providers."""

from hybridsearch.embeddings.providers.openai import OpenAIEmbedding

__all__ = ["OpenAIEmbedding"]
