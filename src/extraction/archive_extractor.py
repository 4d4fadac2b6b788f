# src/extraction/archive_extractor.py — v1
"""Per-archive content extraction: iterate entries, dispatch to scanners.

Matches are aggregated in archive entry order, then line order.
"""

from __future__ import annotations

import logging
import re
import zipfile
from typing import TYPE_CHECKING

from epubsearch.core.models import Match
from epubsearch.extraction.archive import classify_entry, open_archive, should_skip_entry
from epubsearch.logging.context import archive_context
from epubsearch.scanning.html_scanner import scan_html
from epubsearch.scanning.text_scanner import MAX_LINE_LENGTH, scan_text
from epubsearch.scanning.tokenizer import DEFAULT_CHECK_INTERVAL

if TYPE_CHECKING:
    from epubsearch.core.cancellation import CancelToken
    from epubsearch.scanning.pools import LineBuffer, ScratchPool
    from epubsearch.scanning.tokenizer import BlockTextTokenizer

logger = logging.getLogger(__name__)


class ArchiveExtractor:
    """Find pattern matches in the content entries of one EPUB archive.

    Args:
        scanner_pool: Line buffer pool for text entries (module pool if None).
        tokenizer_pool: Tokenizer pool for markup entries (module pool if None).
        html_check_interval: Tokens between cancellation checks in markup.
        max_line_length: Longest supported line in text entries.
    """

    def __init__(
        self,
        scanner_pool: ScratchPool[LineBuffer] | None = None,
        tokenizer_pool: ScratchPool[BlockTextTokenizer] | None = None,
        html_check_interval: int = DEFAULT_CHECK_INTERVAL,
        max_line_length: int = MAX_LINE_LENGTH,
    ) -> None:
        self._scanner_pool = scanner_pool
        self._tokenizer_pool = tokenizer_pool
        self._html_check_interval = html_check_interval
        self._max_line_length = max_line_length

    def extract(
        self,
        archive_path: str,
        pattern: re.Pattern[str],
        context_lines: int,
        token: CancelToken | None = None,
    ) -> list[Match]:
        """Scan every eligible entry of ``archive_path``.

        Returns:
            Matches in entry order; empty if nothing matched.

        Raises:
            ArchiveIOError: The archive cannot be opened.
            ArchiveFormatError: The archive is not a ZIP container.
            SearchCancelledError: The token was done before an entry open.
        """
        with open_archive(archive_path) as archive:
            matches: list[Match] = []
            for info in archive.infolist():
                if info.is_dir() or should_skip_entry(info.filename):
                    continue

                if token is not None:
                    token.raise_if_cancelled()

                kind = classify_entry(info.filename)
                if kind is None:
                    continue

                with archive_context(archive_path, info.filename):
                    entry_matches = self._scan_entry(
                        archive, info, kind, pattern, context_lines, token,
                    )
                if entry_matches:
                    matches.extend(entry_matches)

            logger.debug("Found %d matches in %s", len(matches), archive_path)
            return matches

    def _scan_entry(
        self,
        archive: zipfile.ZipFile,
        info: zipfile.ZipInfo,
        kind: str,
        pattern: re.Pattern[str],
        context_lines: int,
        token: CancelToken | None,
    ) -> list[Match] | None:
        try:
            stream = archive.open(info)
        except (OSError, RuntimeError, NotImplementedError, zipfile.BadZipFile) as exc:
            logger.warning("Failed to open %s in epub: %s", info.filename, exc)
            return None

        with stream:
            if kind == "text":
                return scan_text(
                    stream, pattern, info.filename, context_lines,
                    pool=self._scanner_pool,
                    max_line_length=self._max_line_length,
                )
            return scan_html(
                stream, pattern, info.filename, context_lines,
                token=token,
                pool=self._tokenizer_pool,
                check_interval=self._html_check_interval,
            )
