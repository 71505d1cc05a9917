"""Vector math — L2 normalization, cosine similarity and distance, averaging."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from hybridsearch.exceptions import DimensionMismatchError

if TYPE_CHECKING:
    from collections.abc import Sequence


def normalize(vector: Sequence[float]) -> list[float]:
    """Scale *vector* to unit L2 norm.  A zero vector is returned unchanged."""
    arr = np.asarray(vector, dtype=np.float64)
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        return [float(x) for x in vector]
    return (arr / norm).tolist()


def cosine_similarity(v1: Sequence[float], v2: Sequence[float]) -> float:
    """Return the cosine similarity of *v1* and *v2* (both normalized first)."""
    _check_dimensions(v1, v2)
    a = np.asarray(normalize(v1), dtype=np.float64)
    b = np.asarray(normalize(v2), dtype=np.float64)
    return float(np.dot(a, b))


def cosine_distance(v1: Sequence[float], v2: Sequence[float]) -> float:
    """Return ``1 - cosine_similarity(v1, v2)``; lower means more similar."""
    return 1.0 - cosine_similarity(v1, v2)


def mean(vectors: Sequence[Sequence[float]]) -> list[float]:
    """Element-wise mean of equally sized *vectors*."""
    if not vectors:
        msg = "Cannot average an empty list of vectors"
        raise ValueError(msg)
    first = len(vectors[0])
    for v in vectors[1:]:
        if len(v) != first:
            msg = f"Cannot average vectors of dimensions {first} and {len(v)}"
            raise DimensionMismatchError(msg)
    return np.mean(np.asarray(vectors, dtype=np.float64), axis=0).tolist()


def _check_dimensions(v1: Sequence[float], v2: Sequence[float]) -> None:
    if len(v1) != len(v2):
        msg = f"Vector dimensions differ: {len(v1)} != {len(v2)}"
        raise DimensionMismatchError(msg)
