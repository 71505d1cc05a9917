"""Indexing — pipeline and boost scoring."""

from hybridsearch.indexing.boost import calculate_boost
from hybridsearch.indexing.pipeline import IndexingPipeline, build_content

__all__ = [
    "IndexingPipeline",
    "build_content",
    "calculate_boost",
]
