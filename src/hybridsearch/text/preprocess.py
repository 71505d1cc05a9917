"""Text normalization applied before chunking and embedding."""

from __future__ import annotations

import re

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
# Control characters other than the whitespace ones (\t \n \v \f \r),
# which are collapsed to a single space instead.
_CONTROL_RE = re.compile(r"[\x00-\x08\x0e-\x1f\x7f]")


def normalize_text(text: str) -> str:
    """Strip markup, drop control characters, collapse whitespace and trim.

    >>> normalize_text("<p>Hello\\n\\n  <b>world</b></p>")
    'Hello world'
    """
    text = _COMMENT_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    text = _CONTROL_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()
