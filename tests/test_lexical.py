"""Tests for tokenization, lexical index building and query ranking."""

from __future__ import annotations

import logging

import pytest

from hybridsearch.text import lexical
from hybridsearch.text.lexical import (
    CONTENT_WEIGHT,
    TITLE_WEIGHT,
    build_lexical_index,
    rank,
    stop_words,
    tokenize,
)


class TestTokenize:
    def test_lowercases_stems_and_drops_stopwords(self):
        assert tokenize("The running dogs") == ["run", "dog"]

    def test_punctuation_and_underscores_split(self):
        tokens = tokenize("phone:123 snake_case")
        assert len(tokens) == 4
        assert tokens == tokenize("phone 123 snake case")

    def test_only_stopwords(self):
        assert tokenize("and the of") == []

    def test_unicode_letters(self):
        assert len(tokenize("Müller")) == 1
        assert tokenize("Müller") == tokenize("MÜLLER")


class TestBuildLexicalIndex:
    def test_title_outweighs_content(self):
        index = build_lexical_index("Contact", "Opening hours")
        assert index["contact"] == pytest.approx(TITLE_WEIGHT)
        assert index[tokenize("opening")[0]] == pytest.approx(CONTENT_WEIGHT)

    def test_weights_accumulate(self):
        index = build_lexical_index("Contact", "Contact contact")
        assert index["contact"] == pytest.approx(TITLE_WEIGHT + 2 * CONTENT_WEIGHT)

    def test_empty(self):
        assert build_lexical_index("", "") == {}


class TestRank:
    def test_single_term(self):
        assert rank("contact", {"contact": 1.0}) == pytest.approx(0.5)

    def test_query_is_stemmed(self):
        assert rank("contacts", {"contact": 1.0}) == pytest.approx(0.5)

    def test_no_match(self):
        assert rank("pricing", {"contact": 1.0}) == 0.0

    def test_stopword_only_query(self):
        assert rank("the and", {"contact": 1.0}) == 0.0

    def test_mean_over_query_terms(self):
        index = {"contact": 1.0}
        assert rank("contact pricing", index) == pytest.approx(0.25)

    def test_bounded_below_one(self):
        assert 0.0 < rank("contact", {"contact": 1e6}) < 1.0

    def test_more_occurrences_rank_higher(self):
        assert rank("contact", {"contact": 2.0}) > rank("contact", {"contact": 1.0})


# ==================================================================
# Stopword corpus
# ==================================================================


class _FakeCorpus:
    """Stands in for ``nltk.corpus.stopwords``; missing until *installed*."""

    def __init__(self, *, installed: bool = False) -> None:
        self.installed = installed
        self.languages: list[str] = []

    def words(self, language: str) -> list[str]:
        self.languages.append(language)
        if not self.installed:
            msg = "Resource stopwords not found."
            raise LookupError(msg)
        return ["the", "and", "of"]


@pytest.fixture
def fresh_stop_words():
    stop_words.cache_clear()
    yield stop_words
    stop_words.cache_clear()


class TestStopWords:
    def test_installed_corpus_is_used(self, fresh_stop_words, monkeypatch):
        corpus = _FakeCorpus(installed=True)
        downloads: list[str] = []
        monkeypatch.setattr(lexical, "stopwords", corpus)
        monkeypatch.setattr(lexical.nltk, "download", lambda name, **kw: downloads.append(name))

        assert fresh_stop_words() == frozenset({"the", "and", "of"})
        assert corpus.languages == ["english"]
        assert downloads == []

    def test_missing_corpus_is_downloaded_quietly(self, fresh_stop_words, monkeypatch):
        corpus = _FakeCorpus()
        downloads: list[tuple[str, dict]] = []

        def download(name, **kwargs):
            downloads.append((name, kwargs))
            corpus.installed = True
            return True

        monkeypatch.setattr(lexical, "stopwords", corpus)
        monkeypatch.setattr(lexical.nltk, "download", download)

        assert fresh_stop_words() == frozenset({"the", "and", "of"})
        assert downloads == [("stopwords", {"quiet": True})]

    def test_unavailable_corpus_disables_filtering(self, fresh_stop_words, monkeypatch, caplog):
        monkeypatch.setattr(lexical, "stopwords", _FakeCorpus())
        monkeypatch.setattr(lexical.nltk, "download", lambda name, **kw: False)

        with caplog.at_level(logging.WARNING, logger="hybridsearch.text.lexical"):
            assert fresh_stop_words() == frozenset()
        assert "stopword filtering is disabled" in caplog.text

        monkeypatch.setattr(lexical, "stop_words", fresh_stop_words)
        assert tokenize("the contact") == ["the", "contact"]

    def test_result_is_cached(self, fresh_stop_words, monkeypatch):
        corpus = _FakeCorpus(installed=True)
        monkeypatch.setattr(lexical, "stopwords", corpus)

        fresh_stop_words()
        fresh_stop_words()

        assert corpus.languages == ["english"]

    def test_nltk_english_corpus(self, fresh_stop_words):
        words = fresh_stop_words()
        if not words:
            pytest.skip("NLTK stopwords corpus not available")
        assert {"the", "and", "of", "our"} <= words
        assert "contact" not in words
