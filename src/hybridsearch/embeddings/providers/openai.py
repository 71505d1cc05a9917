"""OpenAIEmbedding — async embedding provider backed by OpenAI's API."""

from __future__ import annotations

import os
from typing import Any

import openai
from openai import AsyncOpenAI

from hybridsearch.exceptions import ConfigurationError, EmbeddingError

# Default dimensions per model when the user does not specify.
_MODEL_DEFAULTS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbedding:
    """Async embedding provider backed by the OpenAI Embeddings API.

    Each call sends ``{model, input, encoding_format: "float"}`` for one
    text.  Transport errors and API error payloads both surface as
    :class:`EmbeddingError`; no retries are made unless *max_retries* is
    raised above its default of 0.
    """

    def __init__(
        self,
        *,
        model: str = "text-embedding-3-small",
        dimensions: int | None = None,
        api_key: str | None = None,
        max_retries: int = 0,
        timeout: float = 30.0,
    ) -> None:
        resolved_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not resolved_key:
            msg = (
                "No OpenAI API key provided. Pass api_key= or set the "
                "OPENAI_API_KEY environment variable."
            )
            raise ConfigurationError(msg)

        self._model = model
        self._dimensions = dimensions
        self._client = AsyncOpenAI(
            api_key=resolved_key,
            max_retries=max_retries,
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # EmbeddingProvider protocol
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> list[float]:
        """Embed a single text string via the OpenAI API."""
        kwargs: dict[str, Any] = {
            "input": text,
            "model": self._model,
            "encoding_format": "float",
        }
        if self._dimensions is not None:
            kwargs["dimensions"] = self._dimensions

        try:
            response = await self._client.embeddings.create(**kwargs)
        except openai.OpenAIError as e:
            msg = f"OpenAI API error: {e}"
            raise EmbeddingError(msg) from e

        if not response.data:
            msg = "OpenAI API returned no embedding data"
            raise EmbeddingError(msg)
        return list(response.data[0].embedding)

    @property
    def dimensions(self) -> int:
        """Return the embedding dimensionality."""
        if self._dimensions is not None:
            return self._dimensions
        default = _MODEL_DEFAULTS.get(self._model)
        if default is not None:
            return default
        msg = f"Unknown default dimensions for model {self._model!r}. Pass dimensions= explicitly."
        raise ConfigurationError(msg)

    @property
    def model_name(self) -> str:
        """Return the model name."""
        return self._model

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self._client.close()
