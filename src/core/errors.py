# src/core/errors.py — v1
"""Error taxonomy shared by every layer of the search engine.

Query and pattern errors are fatal to a whole search. Archive errors are
recovered per archive by the orchestrator. Cancellation errors surface only
when a caller cancels or a deadline fires mid-run. Handler errors always win.
"""

from __future__ import annotations


class EpubSearchError(Exception):
    """Base class for all epubsearch errors."""


class InvalidQueryError(EpubSearchError):
    """Raised when the query is missing the sub-query its mode requires."""


class InvalidPatternError(EpubSearchError):
    """Raised when a pattern fails to compile."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class ArchiveError(EpubSearchError):
    """Base for errors tied to a path on disk (an archive or the search root)."""

    def __init__(self, message: str, path: str, size: int | None = None) -> None:
        if size is not None:
            message = f"{message} (path: '{path}', size: {size} bytes)"
        else:
            message = f"{message} (path: '{path}')"
        super().__init__(message)
        self.path = path
        self.size = size


class ArchiveIOError(ArchiveError):
    """Raised when a path or archive cannot be opened or read."""


class ArchiveFormatError(ArchiveError):
    """Raised when an archive is not a valid container or its package files are unusable."""


class ManifestNotFoundError(ArchiveFormatError):
    """Raised when neither a container descriptor nor an .opf entry exists."""


class SearchCancelledError(EpubSearchError):
    """Raised when cooperative cancellation is observed."""

    def __init__(self, message: str = "search cancelled") -> None:
        super().__init__(message)


class DeadlineExceededError(SearchCancelledError):
    """Raised when a token's deadline passes before the work finished."""

    def __init__(self, message: str = "deadline exceeded") -> None:
        super().__init__(message)


class HandlerError(EpubSearchError):
    """Raised when a caller-supplied result or metadata handler fails."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"handler failed for '{path}': {cause}")
        self.path = path
        self.cause = cause
