"""hybridsearch: semantic and keyword search over a document index.

Indexes documents as embedding vectors plus a weighted term index, and
ranks them with a blend of cosine distance and keyword relevance.
"""

__version__ = "0.1.0"

from hybridsearch._service import HybridSearch
from hybridsearch._service_async import HybridSearchAsync
from hybridsearch.cancellation import CancellationToken
from hybridsearch.config import HybridSearchConfig
from hybridsearch.embeddings import (
    ChunkEmbedding,
    EmbeddingClient,
    EmbeddingProvider,
    OpenAIEmbedding,
)
from hybridsearch.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    DocumentNotFoundError,
    EmbeddingError,
    HybridSearchError,
    SchemaNotInitializedError,
    StorageError,
)
from hybridsearch.indexing import IndexingPipeline, calculate_boost
from hybridsearch.models import IndexEntry, QueryLog
from hybridsearch.search import (
    ExactNeighborIndex,
    HybridSearchEngine,
    NeighborIndex,
    SimilarityEngine,
    UsearchNeighborIndex,
)
from hybridsearch.sources import DocumentSource, StaticDocumentSource
from hybridsearch.store import DatabaseIndexStore, IndexStore
from hybridsearch.types import (
    BatchResult,
    BoostHint,
    IndexResult,
    SearchQuery,
    SearchResult,
    SimilarResult,
    SourceDocument,
)

__all__ = [
    "BatchResult",
    "BoostHint",
    "CancellationToken",
    "ChunkEmbedding",
    "ConfigurationError",
    "DatabaseIndexStore",
    "DimensionMismatchError",
    "DocumentNotFoundError",
    "DocumentSource",
    "EmbeddingClient",
    "EmbeddingError",
    "EmbeddingProvider",
    "ExactNeighborIndex",
    "HybridSearch",
    "HybridSearchAsync",
    "HybridSearchConfig",
    "HybridSearchEngine",
    "HybridSearchError",
    "IndexEntry",
    "IndexResult",
    "IndexStore",
    "IndexingPipeline",
    "NeighborIndex",
    "OpenAIEmbedding",
    "QueryLog",
    "SchemaNotInitializedError",
    "SearchQuery",
    "SearchResult",
    "SimilarResult",
    "SimilarityEngine",
    "SourceDocument",
    "StaticDocumentSource",
    "StorageError",
    "UsearchNeighborIndex",
    "__version__",
    "calculate_boost",
]
