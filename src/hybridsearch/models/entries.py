"""IndexEntry and QueryLog models.

``IndexEntry`` is the only persisted record the core owns: one row per
``(source_id, source_type, language_id)`` holding both embeddings and the
lexical term map.  On PostgreSQL the vectors are pgvector columns and the
term map is JSONB with a GIN index.  ``QueryLog`` is an append-only
analytics table that the core writes but never reads.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from hybridsearch.models.types import EmbeddingVector, TermMap


class IndexEntry(SQLModel, table=True):
    """A searchable document with its vectors and lexical index."""

    __tablename__ = "hybridsearch_index"
    __table_args__ = (
        UniqueConstraint(
            "source_id",
            "source_type",
            "language_id",
            name="uq_hybridsearch_index_source",
        ),
        Index(
            "ix_hybridsearch_index_lexical",
            "lexical_index",
            postgresql_using="gin",
        ).ddl_if(dialect="postgresql"),
    )

    id: int | None = Field(default=None, primary_key=True)
    source_id: int = Field(index=True)
    source_type: str = Field(default="pages", index=True)
    parent_scope_id: int = Field(default=0)
    scope_id: int = Field(default=0, index=True)
    language_id: int = Field(default=0, index=True)
    title: str = Field(default="", sa_type=Text)
    content: str = Field(default="", sa_type=Text)
    url: str = Field(default="")
    content_vector: list[float] = Field(default_factory=list, sa_type=EmbeddingVector)
    title_vector: list[float] = Field(default_factory=list, sa_type=EmbeddingVector)
    lexical_index: dict[str, float] = Field(
        default_factory=dict,
        sa_type=TermMap,  # type: ignore[invalid-argument-type]
    )
    content_hash: str = Field(default="", index=True)
    boost_factor: float = Field(default=1.0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class QueryLog(SQLModel, table=True):
    """One executed search query, recorded for analytics."""

    __tablename__ = "hybridsearch_query_log"

    id: int | None = Field(default=None, primary_key=True)
    query_text: str = Field(sa_type=Text)
    query_vector: list[float] = Field(default_factory=list, sa_type=EmbeddingVector)
    scope_id: int = Field(default=0, index=True)
    language_id: int = Field(default=0)
    results_count: int = Field(default=0)
    search_time_ms: int = Field(default=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
        index=True,
    )
