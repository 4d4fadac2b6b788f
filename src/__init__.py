# src/__init__.py — v1
"""epubsearch: concurrent full-text search across EPUB collections."""

from __future__ import annotations

from epubsearch.version import __version__

__all__ = ["__version__"]
