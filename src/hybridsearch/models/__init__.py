"""SQLModel database models for hybridsearch."""

from hybridsearch.models.entries import IndexEntry, QueryLog

__all__ = [
    "IndexEntry",
    "QueryLog",
]
