# src/core/cancellation.py — v1
"""Cooperative cancellation token shared by the producer and all workers.

The token is polled, never interrupts. It is safe to check from worker
threads and from the event loop alike.
"""

from __future__ import annotations

import threading
import time

from epubsearch.core.errors import DeadlineExceededError, SearchCancelledError


class CancelToken:
    """Explicit cancellation flag with an optional deadline and parent.

    A child token is done when it is cancelled itself, when its own deadline
    passes, or when any ancestor is done.
    """

    def __init__(
        self,
        parent: CancelToken | None = None,
        deadline: float | None = None,
    ) -> None:
        self._parent = parent
        self._deadline = deadline
        self._event = threading.Event()

    @classmethod
    def with_timeout(cls, seconds: float, parent: CancelToken | None = None) -> CancelToken:
        """Create a token that expires ``seconds`` from now."""
        return cls(parent=parent, deadline=time.monotonic() + seconds)

    def child(self) -> CancelToken:
        """Derive a token that can be cancelled without touching this one."""
        return CancelToken(parent=self)

    def cancel(self) -> None:
        self._event.set()

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def error(self) -> SearchCancelledError | None:
        """Return the cancellation cause, or None while the token is live."""
        if self._parent is not None:
            err = self._parent.error()
            if err is not None:
                return err
        if self._event.is_set():
            return SearchCancelledError()
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return DeadlineExceededError()
        return None

    def done(self) -> bool:
        return self.error() is not None

    def raise_if_cancelled(self) -> None:
        err = self.error()
        if err is not None:
            raise err
