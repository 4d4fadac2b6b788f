# src/search/filters.py — v1
"""Result filters applied before a result reaches the caller."""

from __future__ import annotations

import os

from epubsearch.core.models import Metadata, SearchFilters


def _equal_fold(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def matches_metadata_filters(metadata: Metadata, filters: SearchFilters) -> bool:
    """Case-insensitive exact match on author, series and title.

    An empty filter value disables that filter. The author filter passes when
    any one of the authors matches.
    """
    if filters.author_equals:
        if not any(_equal_fold(author, filters.author_equals) for author in metadata.authors):
            return False

    if filters.series_equals and not _equal_fold(metadata.series, filters.series_equals):
        return False

    if filters.title_equals and not _equal_fold(metadata.title, filters.title_equals):
        return False

    return True


def normalize_allow_list(files_in: list[str]) -> frozenset[str]:
    """Normalized form of an explicit path allow-list."""
    return frozenset(os.path.normpath(path) for path in files_in if path)


def is_allowed(path: str, allow_list: frozenset[str]) -> bool:
    """True when the allow-list is empty or contains ``path``."""
    return not allow_list or os.path.normpath(path) in allow_list
