"""Column types whose storage depends on the database dialect."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator

try:
    from pgvector.sqlalchemy import Vector

    _HAS_PGVECTOR = True
except ImportError:  # pragma: no cover
    Vector = None  # type: ignore[assignment,misc]
    _HAS_PGVECTOR = False

# Term map: JSONB on PostgreSQL so it can carry a GIN index.
TermMap = JSON().with_variant(JSONB(), "postgresql")


def require_pgvector() -> None:
    if not _HAS_PGVECTOR:
        msg = (
            "pgvector is required for PostgreSQL index stores. "
            "Install it with: pip install hybridsearch[postgres]"
        )
        raise ImportError(msg)


def pgvector_type(dimensions: int | None = None) -> Any:
    """Return a pgvector ``vector`` type, fixed to *dimensions* when given."""
    require_pgvector()
    return Vector(dimensions)


class EmbeddingVector(TypeDecorator):
    """A list of floats: pgvector ``vector`` on PostgreSQL, JSON elsewhere."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(pgvector_type())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return None
        return [float(x) for x in value]

    def process_result_value(self, value: Any, dialect: Any) -> list[float]:
        if value is None:
            return []
        return [float(x) for x in value]
