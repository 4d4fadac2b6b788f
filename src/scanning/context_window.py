# src/scanning/context_window.py — v1
"""Context-window match building shared by the text and HTML scanners."""

from __future__ import annotations

import re
from collections.abc import Sequence

from epubsearch.core.models import Match


def window_bounds(index: int, line_count: int, context_lines: int) -> tuple[int, int]:
    """Half-open window ``[max(0, i-k), min(n, i+k+1))`` around line ``index``."""
    start = max(index - context_lines, 0)
    end = min(index + context_lines + 1, line_count)
    return start, end


def build_context_matches(
    lines: Sequence[str],
    pattern: re.Pattern[str],
    entry_name: str,
    context_lines: int,
) -> list[Match]:
    """Emit one Match per matching line, each with its own window.

    Windows of adjacent matches may overlap; they are never merged.
    """
    matches: list[Match] = []
    line_count = len(lines)
    for i in range(line_count):
        if pattern.search(lines[i]) is None:
            continue
        start, end = window_bounds(i, line_count, context_lines)
        block = "\n".join(lines[start:end])
        matches.append(Match(line=block.strip(), file_name=entry_name))
    return matches
