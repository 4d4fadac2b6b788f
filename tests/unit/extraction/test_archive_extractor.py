# tests/unit/extraction/test_archive_extractor.py — v1
"""Tests for extraction/archive_extractor.py."""

from __future__ import annotations

import re

import pytest

from epubsearch.core.cancellation import CancelToken
from epubsearch.core.errors import ArchiveFormatError, ArchiveIOError, SearchCancelledError
from epubsearch.extraction.archive_extractor import ArchiveExtractor

HOLMES = re.compile("Holmes")


class TestArchiveExtractor:
    def test_matches_in_entry_then_line_order(self, epub_factory):
        path = epub_factory(
            "book.epub",
            {
                "OEBPS/ch2.xhtml": "<p>Holmes in two</p><p>and Holmes again</p>",
                "OEBPS/ch1.txt": "Holmes in one\n",
            },
        )
        matches = ArchiveExtractor().extract(str(path), HOLMES, 0)
        assert [(m.file_name, m.line) for m in matches] == [
            ("OEBPS/ch2.xhtml", "Holmes in two"),
            ("OEBPS/ch2.xhtml", "and Holmes again"),
            ("OEBPS/ch1.txt", "Holmes in one"),
        ]

    def test_skipped_and_unknown_entries_ignored(self, epub_factory):
        path = epub_factory(
            "book.epub",
            {
                "cover.xhtml": "<p>Holmes on the cover</p>",
                "OEBPS/sample.html": "<p>Holmes sample</p>",
                "style.css": "/* Holmes */",
                "content/chapter1.xhtml": "<p>Holmes real</p>",
            },
        )
        matches = ArchiveExtractor().extract(str(path), HOLMES, 0)
        assert [m.line for m in matches] == ["Holmes real"]

    def test_no_matches_returns_empty_list(self, epub_factory):
        path = epub_factory("book.epub", {"a.txt": "nothing here"})
        assert ArchiveExtractor().extract(str(path), HOLMES, 0) == []

    def test_directories_skipped(self, epub_factory):
        path = epub_factory("book.epub", {"OEBPS/": b"", "OEBPS/a.txt": "Holmes"})
        assert len(ArchiveExtractor().extract(str(path), HOLMES, 0)) == 1

    def test_context_passed_through(self, epub_factory):
        path = epub_factory("book.epub", {"a.txt": "before\nHolmes\nafter\n"})
        matches = ArchiveExtractor().extract(str(path), HOLMES, 1)
        assert matches[0].line == "before\nHolmes\nafter"

    def test_missing_archive(self, tmp_path):
        with pytest.raises(ArchiveIOError):
            ArchiveExtractor().extract(str(tmp_path / "nope.epub"), HOLMES, 0)

    def test_corrupt_archive(self, tmp_path):
        bad = tmp_path / "bad.epub"
        bad.write_bytes(b"PK\x03\x04 truncated")
        with pytest.raises(ArchiveFormatError):
            ArchiveExtractor().extract(str(bad), HOLMES, 0)

    def test_cancelled_before_entry(self, epub_factory):
        path = epub_factory("book.epub", {"a.txt": "Holmes"})
        token = CancelToken()
        token.cancel()
        with pytest.raises(SearchCancelledError):
            ArchiveExtractor().extract(str(path), HOLMES, 0, token)
