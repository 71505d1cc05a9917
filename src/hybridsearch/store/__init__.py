"""Index store — protocol, database implementation, dialect helpers."""

from hybridsearch.store.database import DatabaseIndexStore
from hybridsearch.store.protocols import IndexStore

__all__ = [
    "DatabaseIndexStore",
    "IndexStore",
]
