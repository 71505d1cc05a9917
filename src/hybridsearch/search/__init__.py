"""Search layer — hybrid ranking, similarity lookup, neighbor indexes."""

from hybridsearch.search._hybrid import HybridSearchEngine
from hybridsearch.search._similar import SimilarityEngine
from hybridsearch.search.neighbors import ExactNeighborIndex, NeighborIndex, UsearchNeighborIndex

__all__ = [
    "ExactNeighborIndex",
    "HybridSearchEngine",
    "NeighborIndex",
    "SimilarityEngine",
    "UsearchNeighborIndex",
]
