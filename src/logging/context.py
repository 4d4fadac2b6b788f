# src/logging/context.py — v1
"""Contextual logging support: attach search_id, archive and entry to log records.

Blocking work submitted through run_blocking runs in a copy of the caller's
context, so search_id follows each archive into its worker thread.
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

_search_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "search_id", default=None
)
_archive: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "archive", default=None
)
_entry: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "entry", default=None
)


@dataclass
class LogContext:
    """Snapshot of the current logging context."""

    search_id: str | None = None
    archive: str | None = None
    entry: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        search_id=_search_id.get(),
        archive=_archive.get(),
        entry=_entry.get(),
    )


def set_search_context(search_id: str) -> None:
    """Set search-level context (called once per search invocation)."""
    _search_id.set(search_id)


@contextmanager
def archive_context(archive: str, entry: str | None = None) -> Iterator[None]:
    """Scope log records to one archive (and optionally one entry inside it)."""
    archive_token = _archive.set(archive)
    entry_token = _entry.set(entry)
    try:
        yield
    finally:
        _entry.reset(entry_token)
        _archive.reset(archive_token)


def clear_context() -> None:
    """Reset all context variables."""
    _search_id.set(None)
    _archive.set(None)
    _entry.set(None)
