# src/scanning/text_scanner.py — v1
"""Plain-text entry scanner.

Lines are split on any newline convention (``\\n``, ``\\r\\n``, ``\\r``) and
decoded as UTF-8 with replacement. Scan errors are logged and yield None,
never partial matches.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
import zlib
from collections.abc import Iterator
from typing import BinaryIO

from epubsearch.core.models import Match
from epubsearch.scanning.context_window import build_context_matches
from epubsearch.scanning.pools import LineBuffer, ScratchPool, scanner_pool

logger = logging.getLogger(__name__)

MAX_LINE_LENGTH = 256 * 1024


class LineTooLongError(ValueError):
    """Raised when a single line exceeds the configured maximum."""


def scan_text(
    stream: BinaryIO,
    pattern: re.Pattern[str],
    entry_name: str,
    context_lines: int,
    pool: ScratchPool[LineBuffer] | None = None,
    max_line_length: int = MAX_LINE_LENGTH,
) -> list[Match] | None:
    """Scan a text stream and return its matches, or None on a read error."""
    reader = io.TextIOWrapper(stream, encoding="utf-8", errors="replace", newline=None)
    try:
        if context_lines == 0:
            return _scan_without_context(reader, pattern, entry_name, max_line_length)

        with (pool or scanner_pool).acquire() as buffer:
            for line in _iter_lines(reader, max_line_length):
                buffer.append(line)
            return build_context_matches(buffer, pattern, entry_name, context_lines)
    except (OSError, EOFError, zipfile.BadZipFile, zlib.error, LineTooLongError) as exc:
        logger.error("Error scanning text file %s: %s", entry_name, exc)
        return None
    finally:
        # the caller owns the underlying stream
        reader.detach()


def _scan_without_context(
    reader: io.TextIOWrapper,
    pattern: re.Pattern[str],
    entry_name: str,
    max_line_length: int,
) -> list[Match]:
    matches: list[Match] = []
    for line in _iter_lines(reader, max_line_length):
        if pattern.search(line) is not None:
            matches.append(Match(line=line.strip(), file_name=entry_name))
    return matches


def _iter_lines(reader: io.TextIOWrapper, max_line_length: int) -> Iterator[str]:
    while True:
        line = reader.readline(max_line_length + 1)
        if not line:
            return
        if line.endswith("\n"):
            line = line[:-1]
        elif len(line) > max_line_length:
            raise LineTooLongError(f"line exceeds {max_line_length} characters")
        yield line
