"""Exception hierarchy for hybridsearch."""


class HybridSearchError(Exception):
    """Base exception for all hybridsearch errors."""


class ConfigurationError(HybridSearchError):
    """Raised when required configuration (e.g. a provider credential) is missing or invalid."""


class SchemaNotInitializedError(HybridSearchError):
    """Raised when the index tables have not been created yet."""


class StorageError(HybridSearchError):
    """Raised on index store failures (DB connection, constraint errors, etc.)."""


class EmbeddingError(HybridSearchError):
    """Raised when the embedding provider fails or returns no usable vector."""


class DimensionMismatchError(HybridSearchError, ValueError):
    """Raised when two vectors of different lengths are compared or combined."""


class DocumentNotFoundError(HybridSearchError):
    """Raised when the document source has no document for the requested id."""
