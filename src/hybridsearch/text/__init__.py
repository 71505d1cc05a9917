"""Text handling — preprocessing, chunking, lexical analysis."""

from hybridsearch.text.chunker import Chunk, iter_chunks, split
from hybridsearch.text.lexical import build_lexical_index, rank, tokenize
from hybridsearch.text.preprocess import normalize_text

__all__ = [
    "Chunk",
    "build_lexical_index",
    "iter_chunks",
    "normalize_text",
    "rank",
    "split",
    "tokenize",
]
