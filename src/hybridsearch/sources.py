"""DocumentSource protocol and an in-memory implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from hybridsearch.types import SourceDocument


@runtime_checkable
class DocumentSource(Protocol):
    """Producer of :class:`SourceDocument` snapshots.

    Implemented by the host system; hybridsearch never reads the host's
    storage directly.
    """

    async def get_document(self, source_id: int) -> SourceDocument | None:
        """Return the current snapshot of *source_id*, or ``None`` if it is gone."""
        ...

    async def list_documents(self, scope_id: int | None = None) -> list[int]:
        """List ids eligible for indexing, optionally under *scope_id*."""
        ...


class StaticDocumentSource:
    """A :class:`DocumentSource` over a fixed set of documents."""

    def __init__(self, documents: Iterable[SourceDocument] = ()) -> None:
        self._documents: dict[int, SourceDocument] = {d.source_id: d for d in documents}

    def put(self, doc: SourceDocument) -> None:
        """Add or replace *doc*."""
        self._documents[doc.source_id] = doc

    def discard(self, source_id: int) -> None:
        """Forget *source_id* if present."""
        self._documents.pop(source_id, None)

    async def get_document(self, source_id: int) -> SourceDocument | None:
        return self._documents.get(source_id)

    async def list_documents(self, scope_id: int | None = None) -> list[int]:
        return sorted(
            d.source_id
            for d in self._documents.values()
            if scope_id is None or d.root_scope_id == scope_id
        )
