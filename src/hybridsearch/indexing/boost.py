"""Boost factor — a multiplicative importance score stored with each entry."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hybridsearch.types import BoostHint

PAGE_TYPE_FACTORS: dict[int, float] = {
    1: 1.0,  # standard page
    4: 0.5,  # shortcut
    199: 0.1,  # menu separator
}
IMPORTANT_TITLE_KEYWORDS: tuple[str, ...] = ("important", "featured", "main", "home")


def calculate_boost(hint: BoostHint | None, title: str, content: str) -> float:
    """Return the boost factor for a document, rounded to two decimals.

    Without a *hint* the factor is 1.0.
    """
    if hint is None:
        return 1.0

    boost = PAGE_TYPE_FACTORS.get(hint.page_type, 1.0)

    if hint.depth <= 2:
        boost *= 1.5
    elif hint.depth <= 4:
        boost *= 1.2

    if len(content) > 5000:
        boost *= 1.3
    elif len(content) < 500:
        boost *= 0.8

    lowered = title.lower()
    if any(keyword in lowered for keyword in IMPORTANT_TITLE_KEYWORDS):
        boost *= 1.2

    if hint.nav_hidden:
        boost *= 0.7
    if hint.no_search:
        boost *= 0.3

    return round(boost, 2)
