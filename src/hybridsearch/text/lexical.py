"""Lexical analysis — tokenization, weighted term index and query ranking.

The lexical index stored with each entry is a mapping of Porter stems to
weighted term frequencies.  Title occurrences weigh more than body
occurrences, so a query term found in the title ranks higher than the same
term buried in the content.  Stopwords come from the NLTK ``stopwords``
corpus.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from functools import lru_cache

import nltk
from nltk.corpus import stopwords
from nltk.stem.porter import PorterStemmer

logger = logging.getLogger(__name__)

TITLE_WEIGHT: float = 1.0
CONTENT_WEIGHT: float = 0.4

STOPWORD_LANGUAGE = "english"

_TOKEN_RE = re.compile(r"[^\W_]+")

_stemmer = PorterStemmer()


@lru_cache(maxsize=1)
def stop_words() -> frozenset[str]:
    """Return the NLTK English stopwords, downloading the corpus if missing.

    The download is attempted once, quietly.  When the corpus still cannot
    be loaded a warning is logged and no word is treated as a stopword.
    """
    try:
        return frozenset(stopwords.words(STOPWORD_LANGUAGE))
    except LookupError:
        logger.info("NLTK stopwords corpus not found, downloading it")

    nltk.download("stopwords", quiet=True)
    try:
        return frozenset(stopwords.words(STOPWORD_LANGUAGE))
    except LookupError:
        logger.warning("NLTK stopwords corpus unavailable; stopword filtering is disabled")
        return frozenset()


@lru_cache(maxsize=50_000)
def _stem(word: str) -> str:
    return _stemmer.stem(word)


def tokenize(text: str) -> list[str]:
    """Lowercase, drop stopwords and stem; returns stems in text order."""
    stops = stop_words()
    return [_stem(word) for word in _TOKEN_RE.findall(text.lower()) if word not in stops]


def build_lexical_index(title: str, content: str) -> dict[str, float]:
    """Build the weighted term map for an entry from its *title* and *content*."""
    index: dict[str, float] = {}
    for weight, text in ((TITLE_WEIGHT, title), (CONTENT_WEIGHT, content)):
        for term, count in Counter(tokenize(text)).items():
            index[term] = index.get(term, 0.0) + weight * count
    return index


def rank(query: str, index: dict[str, float]) -> float:
    """Score *query* against a lexical *index*.

    Each distinct query stem contributes ``w / (1 + w)`` where ``w`` is its
    weighted frequency in the index, so repeated occurrences help with
    diminishing returns.  The result is the mean over query stems and lies
    in ``[0, 1)``; it is ``0.0`` when no query stem occurs in the index.
    """
    terms = set(tokenize(query))
    if not terms:
        return 0.0
    total = 0.0
    for term in terms:
        weight = index.get(term, 0.0)
        total += weight / (1.0 + weight)
    return total / len(terms)
