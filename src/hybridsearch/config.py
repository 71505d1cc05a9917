"""HybridSearchConfig — settings for the indexing and search stack."""

from __future__ import annotations

from pydantic import AliasChoices, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hybridsearch.exceptions import ConfigurationError


class HybridSearchConfig(BaseSettings):
    """Settings shared by the embedding client, pipeline and search engines.

    Every field can be passed as a keyword argument or read from the
    environment.  Environment variables use the ``HYBRIDSEARCH_`` prefix and
    the upper-cased field name, e.g. ``HYBRIDSEARCH_EMBEDDING_MODEL``.  The
    API key additionally falls back to ``OPENAI_API_KEY``.

    Attributes:
        database_url: SQLAlchemy async URL of the index store.
        openai_api_key: Credential for the embedding provider.
        embedding_model: Provider model name.
        dimensions: Requested embedding dimensionality (model default if None).
        request_timeout: Seconds before a provider call is abandoned.
        long_text_threshold: Normalized length above which text is chunked.
        max_chunk_size: Maximum characters per chunk.
        overlap_size: Characters carried over between consecutive chunks.
        semantic_weight: Weight of ``1 - distance`` in the combined score.
        lexical_weight: Weight of the lexical rank in the combined score.
        max_distance: Semantic distance below which a candidate is retained.
        batch_concurrency: Documents indexed concurrently in a batch.
        record_queries: Whether searches are appended to the query log.
    """

    model_config = SettingsConfigDict(
        env_prefix="HYBRIDSEARCH_",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
        frozen=True,
        populate_by_name=True,
    )

    database_url: str = "sqlite+aiosqlite:///hybridsearch.db"
    openai_api_key: str | None = Field(
        None,
        validation_alias=AliasChoices("HYBRIDSEARCH_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    embedding_model: str = "text-embedding-3-small"
    dimensions: int | None = Field(None, gt=0)
    request_timeout: float = Field(30.0, gt=0)
    long_text_threshold: int = Field(32000, gt=0)
    max_chunk_size: int = Field(6000, gt=0)
    overlap_size: int = Field(500, ge=0)
    semantic_weight: float = 0.7
    lexical_weight: float = 0.3
    max_distance: float = 0.5
    batch_concurrency: int = 4
    record_queries: bool = False

    @model_validator(mode="after")
    def _check_sizes(self) -> HybridSearchConfig:
        if self.overlap_size >= self.max_chunk_size:
            msg = (
                f"overlap_size ({self.overlap_size}) must be smaller than "
                f"max_chunk_size ({self.max_chunk_size})"
            )
            raise ConfigurationError(msg)
        if self.batch_concurrency < 1:
            msg = "batch_concurrency must be at least 1"
            raise ConfigurationError(msg)
        return self

    @classmethod
    def from_env(cls) -> HybridSearchConfig:
        """Build a config from the environment, reporting bad values as :class:`ConfigurationError`."""
        try:
            return cls()
        except ValidationError as e:
            msg = f"Invalid hybridsearch settings: {e}"
            raise ConfigurationError(msg) from e
