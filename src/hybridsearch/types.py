"""Value objects passed between the document source, pipeline and engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hybridsearch.models.entries import IndexEntry

DEFAULT_SOURCE_TYPE = "pages"


# ------------------------------------------------------------------
# Input documents
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BoostHint:
    """Document metadata used to derive the stored boost factor.

    Attributes:
        page_type: Source-type class (1 standard, 4 shortcut, 199 separator).
        depth: Hierarchy level, 1 for top-level documents.
        nav_hidden: Whether the document is hidden from navigation.
        no_search: Whether the document is flagged as excluded from search.
    """

    page_type: int = 1
    depth: int = 1
    nav_hidden: bool = False
    no_search: bool = False


@dataclass(frozen=True, slots=True)
class SourceDocument:
    """Snapshot of one document, supplied by a :class:`DocumentSource`.

    Attributes:
        source_id: Identifier of the document in the source system.
        title: Document title.
        body_text: Concatenated body fragments, markup allowed.
        source_type: Record kind in the source system.
        parent_scope_id: Identifier of the direct parent.
        language_id: Language variant.
        scope_id: Root scope used to filter searches.  When ``None`` the
            document is its own root.
        url: Public URL of the document, resolved by the source.
        boost_hint: Metadata for the boost factor (``None`` means 1.0).
    """

    source_id: int
    title: str
    body_text: str = ""
    source_type: str = DEFAULT_SOURCE_TYPE
    parent_scope_id: int = 0
    language_id: int = 0
    scope_id: int | None = None
    url: str = ""
    boost_hint: BoostHint | None = None

    @property
    def root_scope_id(self) -> int:
        """Return the scope the document is indexed under."""
        return self.scope_id if self.scope_id is not None else self.source_id


# ------------------------------------------------------------------
# Queries and results
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SearchQuery:
    """A hybrid search request.

    Attributes:
        text: Free-text query.
        scope_id: Restrict to entries under this root scope; 0 searches all.
        limit: Maximum number of results.
    """

    text: str
    scope_id: int = 0
    limit: int = 10


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A single ranked hit from :class:`HybridSearchEngine`.

    Attributes:
        entry: The matched index entry.
        semantic_distance: Cosine distance between query and content vectors.
        lexical_rank: Keyword relevance of the query against the entry.
        combined_score: Weighted blend used for ranking (higher is better).
    """

    entry: IndexEntry
    semantic_distance: float
    lexical_rank: float
    combined_score: float


@dataclass(frozen=True, slots=True)
class SimilarResult:
    """A nearest neighbor from :class:`SimilarityEngine`.

    Attributes:
        entry: The neighboring entry.
        distance: Cosine distance to the reference entry (lower is closer).
    """

    entry: IndexEntry
    distance: float


# ------------------------------------------------------------------
# Indexing outcomes
# ------------------------------------------------------------------


@dataclass
class IndexResult:
    """Outcome of indexing one document."""

    success: bool
    message: str
    source_id: int | None = None
    source_type: str = DEFAULT_SOURCE_TYPE
    skipped: bool = False


@dataclass
class BatchResult:
    """Per-document outcomes of a batch run, in input order."""

    results: list[IndexResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def failures(self) -> list[IndexResult]:
        return [r for r in self.results if not r.success]
