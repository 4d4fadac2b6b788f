# src/cache/pattern_cache.py — v1
"""Thread-safe cache of compiled regular expressions.

Hits are served from a plain dict read and only take the lock to bump the
access counter. Misses take the lock, re-check, compile, and evict the
entry with the lowest access counter when the cache is full.

The counter never decays: the eviction order is least-ever-accessed, not
least-recently-used.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass

from epubsearch.core.errors import InvalidPatternError

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 128


@dataclass(slots=True)
class PatternCacheEntry:
    """Compiled matcher plus its access counter."""

    compiled: re.Pattern[str]
    accesses: int = 1


class PatternCache:
    """Bounded pattern-string to compiled-regex cache."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._max_size = max_size
        self._entries: dict[str, PatternCacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, pattern: str) -> re.Pattern[str]:
        """Return the compiled matcher for ``pattern``, compiling on first use.

        Raises:
            InvalidPatternError: If the pattern does not compile.
        """
        entry = self._entries.get(pattern)
        if entry is not None:
            with self._lock:
                # may have been evicted between the read and the lock
                if self._entries.get(pattern) is entry:
                    entry.accesses += 1
            return entry.compiled

        with self._lock:
            entry = self._entries.get(pattern)
            if entry is not None:
                entry.accesses += 1
                return entry.compiled

            try:
                compiled = re.compile(pattern)
            except re.error as exc:
                raise InvalidPatternError(pattern, str(exc)) from exc

            if len(self._entries) >= self._max_size:
                self._evict_locked()

            self._entries[pattern] = PatternCacheEntry(compiled=compiled)
            return compiled

    def access_count(self, pattern: str) -> int:
        """Current access counter for ``pattern`` (0 if not cached)."""
        entry = self._entries.get(pattern)
        return 0 if entry is None else entry.accesses

    def __contains__(self, pattern: object) -> bool:
        return pattern in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict_locked(self) -> None:
        victim = min(self._entries, key=lambda p: self._entries[p].accesses)
        logger.debug(
            "Evicting pattern %r (accesses=%d)",
            victim, self._entries[victim].accesses,
        )
        del self._entries[victim]


_default_cache: PatternCache | None = None
_default_lock = threading.Lock()


def default_pattern_cache(max_size: int = DEFAULT_MAX_SIZE) -> PatternCache:
    """Process-wide cache used when no instance is injected.

    ``max_size`` only applies to the call that creates the cache.
    """
    global _default_cache
    with _default_lock:
        if _default_cache is None:
            _default_cache = PatternCache(max_size)
        return _default_cache
