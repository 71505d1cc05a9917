"""Chunker — split long text into overlapping, size-bounded segments.

Segmentation works on *units*.  Sentences are tried first; text without
sentence structure falls back to paragraphs, then to fixed groups of words.
Units are packed greedily into chunks of at most ``max_chunk_size``
characters, and each new chunk is seeded with the tail of the previous one
so that context spanning a chunk boundary is embedded twice.

A single unit longer than ``max_chunk_size`` is never cut; it becomes an
oversized chunk of its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from hybridsearch.text.preprocess import normalize_text

if TYPE_CHECKING:
    from collections.abc import Iterator

DEFAULT_MAX_CHUNK_SIZE: int = 6000
DEFAULT_OVERLAP_SIZE: int = 500
WORDS_PER_UNIT: int = 50
"""Group size used when text has neither sentences nor paragraphs."""

_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")
_PARAGRAPH_RE = re.compile(r"\n\s*\n")


@dataclass(frozen=True, slots=True)
class Chunk:
    """An ordered slice of a longer text.

    Attributes:
        index: 0-based position of the chunk in its source text.
        text: The chunk content.
    """

    index: int
    text: str


def split(
    text: str,
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
    overlap_size: int = DEFAULT_OVERLAP_SIZE,
) -> list[str]:
    """Split *text* into overlapping chunks of at most *max_chunk_size* characters.

    Text whose normalized form fits in one chunk is returned as a single
    chunk equal to the normalized text.
    """
    if max_chunk_size <= 0:
        msg = f"max_chunk_size must be positive, got {max_chunk_size}"
        raise ValueError(msg)
    if overlap_size < 0 or overlap_size >= max_chunk_size:
        msg = f"overlap_size must be in [0, {max_chunk_size}), got {overlap_size}"
        raise ValueError(msg)

    text = normalize_text(text)
    if len(text) <= max_chunk_size:
        return [text]

    chunks: list[str] = []
    current = ""
    for raw_unit in split_units(text):
        unit = raw_unit.strip()
        if not unit:
            continue
        candidate = f"{current} {unit}" if current else unit
        if len(candidate) > max_chunk_size and current:
            chunks.append(current)
            overlap = overlap_text(current, overlap_size)
            current = f"{overlap} {unit}" if overlap else unit
        else:
            current = candidate

    if current.strip():
        chunks.append(current.strip())
    return chunks


def iter_chunks(
    text: str,
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
    overlap_size: int = DEFAULT_OVERLAP_SIZE,
) -> Iterator[Chunk]:
    """Yield :class:`Chunk` objects for *text* in order."""
    for i, chunk_text in enumerate(split(text, max_chunk_size, overlap_size)):
        yield Chunk(index=i, text=chunk_text)


def split_units(text: str) -> list[str]:
    """Split *text* into sentence-like units for chunk packing."""
    units = [u for u in _SENTENCE_RE.split(text) if u]
    if len(units) <= 1:
        units = [u for u in _PARAGRAPH_RE.split(text) if u]
    if len(units) <= 1:
        words = text.split(" ")
        units = [
            " ".join(words[i : i + WORDS_PER_UNIT])
            for i in range(0, len(words), WORDS_PER_UNIT)
        ]
    return units


def overlap_text(text: str, overlap_size: int) -> str:
    """Return the last *overlap_size* characters of *text*, word-aligned.

    If a space falls within the first half of the window the overlap starts
    just after it, so the next chunk does not open mid-word.
    """
    if overlap_size == 0:
        return ""
    if len(text) <= overlap_size:
        return text
    tail = text[-overlap_size:]
    space = tail.find(" ")
    if space != -1 and space < overlap_size / 2:
        tail = tail[space + 1 :]
    return tail
