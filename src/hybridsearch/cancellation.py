"""Cooperative cancellation for long-running indexing runs.

Full-corpus indexing can take a long time because every document costs two
provider round-trips.  :class:`CancellationToken` lets another thread (a
signal handler, a web request, the sync facade's caller) ask a running batch
to stop.  The batch checks the token before starting each document, so
upserts that already committed remain valid and nothing is interrupted
mid-write.
"""

from __future__ import annotations

import threading


class CancellationToken:
    """Thread-safe flag checked by batch operations between documents.

    Examples:
        >>> token = CancellationToken()
        >>> token.is_cancelled()
        False
        >>> token.cancel()
        >>> token.is_cancelled()
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    def is_cancelled(self) -> bool:
        """Return True once :meth:`cancel` has been called."""
        return self._event.is_set()

    def reset(self) -> None:
        """Clear the flag so the token can be reused."""
        self._event.clear()
