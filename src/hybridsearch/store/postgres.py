"""PostgreSQL statements — pgvector cosine distance and term-map lookups.

The ``content_vector`` column is an unsized pgvector ``vector`` so the table
accepts any embedding model.  The HNSW index is therefore built on
``CAST(content_vector AS vector(n))`` and every distance expression casts the
same way, which lets the planner use it.  Queries against the term map use
the JSONB ``?|`` operator backed by the GIN index declared on the model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import cast, or_, text, type_coerce
from sqlalchemy.dialects.postgresql import JSONB, array
from sqlmodel import select

from hybridsearch.models.entries import IndexEntry
from hybridsearch.models.types import pgvector_type

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from sqlalchemy import TextClause

VECTOR_INDEX_NAME = "ix_hybridsearch_index_content_hnsw"

CREATE_EXTENSION = text("CREATE EXTENSION IF NOT EXISTS vector")


def create_vector_index(dimensions: int) -> TextClause:
    """DDL for the HNSW cosine index over content vectors of *dimensions*."""
    table_name: str = IndexEntry.__tablename__  # type: ignore[assignment]
    return text(
        f"CREATE INDEX IF NOT EXISTS {VECTOR_INDEX_NAME} ON {table_name} "
        f"USING hnsw ((CAST(content_vector AS vector({int(dimensions)}))) vector_cosine_ops)"
    )


def content_distance(vector: Sequence[float], dimensions: int | None = None) -> Any:
    """Cosine distance (``<=>``) between each entry's content vector and *vector*."""
    column = cast(IndexEntry.content_vector, pgvector_type(dimensions))
    return column.cosine_distance([float(x) for x in vector])


def nearest_statement(
    vector: Sequence[float],
    k: int,
    *,
    exclude_id: int | None = None,
    dimensions: int | None = None,
) -> Any:
    """Select ``(id, distance)`` of the *k* entries closest to *vector*."""
    distance = content_distance(vector, dimensions).label("distance")
    stmt = select(IndexEntry.id, distance)
    if exclude_id is not None:
        stmt = stmt.where(IndexEntry.id != exclude_id)
    return stmt.order_by(distance, IndexEntry.id).limit(k)  # type: ignore[arg-type]


def match_statement(
    vector: Sequence[float],
    terms: Collection[str],
    *,
    scope_id: int = 0,
    max_distance: float,
    dimensions: int | None = None,
) -> Any:
    """Select ``(entry, distance)`` for entries near *vector* or containing any of *terms*."""
    distance = content_distance(vector, dimensions)
    condition = distance < max_distance
    if terms:
        has_term = type_coerce(IndexEntry.lexical_index, JSONB).has_any(array(sorted(terms)))
        condition = or_(condition, has_term)
    stmt = select(IndexEntry, distance.label("distance")).where(condition)
    if scope_id != 0:
        stmt = stmt.where(IndexEntry.scope_id == scope_id)
    return stmt.order_by(IndexEntry.id)  # type: ignore[arg-type]
