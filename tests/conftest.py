"""Shared fixtures for hybridsearch tests."""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING

import pytest

from hybridsearch.embeddings import EmbeddingClient
from hybridsearch.exceptions import EmbeddingError
from hybridsearch.store.database import DatabaseIndexStore
from hybridsearch.text import lexical

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

FAKE_DIM = 256

# Fixed stopword list so tokenization does not depend on the NLTK data
# directory or on network access.
TEST_STOP_WORDS = frozenset({"a", "an", "and", "are", "is", "of", "on", "our", "the", "to"})

_WORD_RE = re.compile(r"\w+")


# ------------------------------------------------------------------
# Fake providers
# ------------------------------------------------------------------


class FakeProvider:
    """Deterministic bag-of-words embedding provider.

    Every distinct lowercase word gets its own dimension the first time it
    is seen, so texts sharing words are close and texts without common words
    are orthogonal.  Text without words maps to a fixed reserved dimension.
    """

    def __init__(self, *, fail_on: str | None = None) -> None:
        self._vocab: dict[str, int] = {}
        self._fail_on = fail_on
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self._fail_on is not None and self._fail_on in text:
            msg = f"refusing to embed {text[:20]!r}"
            raise EmbeddingError(msg)
        return self.vector(text)

    def vector(self, text: str) -> list[float]:
        vec = [0.0] * FAKE_DIM
        words = _WORD_RE.findall(text.lower())
        if not words:
            vec[-1] = 1.0
            return vec
        for word in words:
            if word not in self._vocab:
                self._vocab[word] = len(self._vocab) % (FAKE_DIM - 1)
            vec[self._vocab[word]] += 1.0
        norm = math.sqrt(sum(x * x for x in vec))
        return [x / norm for x in vec]

    @property
    def dimensions(self) -> int:
        return FAKE_DIM

    @property
    def model_name(self) -> str:
        return "fake-bow"


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def embeddings(provider: FakeProvider) -> EmbeddingClient:
    return EmbeddingClient(provider)


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """File-backed SQLite URL so concurrent sessions see the same database."""
    return f"sqlite+aiosqlite:///{tmp_path / 'index.db'}"


@pytest.fixture
async def store(db_url: str) -> AsyncIterator[DatabaseIndexStore]:
    """Index store with the schema created."""
    s = DatabaseIndexStore.from_url(db_url)
    await s.ensure_schema()
    yield s
    await s.close()


@pytest.fixture
async def bare_store(db_url: str) -> AsyncIterator[DatabaseIndexStore]:
    """Index store whose tables have not been created."""
    s = DatabaseIndexStore.from_url(db_url)
    yield s
    await s.close()


@pytest.fixture
def provider_factory() -> type[FakeProvider]:
    """The fake provider class, for tests that need custom instances."""
    return FakeProvider


@pytest.fixture(autouse=True)
def english_stopwords(monkeypatch: pytest.MonkeyPatch) -> frozenset[str]:
    """Pin the stopword list used by the lexical tokenizer."""
    monkeypatch.setattr(lexical, "stop_words", lambda: TEST_STOP_WORDS)
    return TEST_STOP_WORDS
