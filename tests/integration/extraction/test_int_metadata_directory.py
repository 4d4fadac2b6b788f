# tests/integration/extraction/test_int_metadata_directory.py — v1
"""Directory-wide metadata extraction.

Covers: extraction/metadata_extractor.py, search/pipeline.py, search/walker.py
"""

from __future__ import annotations

import logging

import pytest

from epubsearch.core.cancellation import CancelToken
from epubsearch.core.errors import ArchiveIOError, HandlerError
from epubsearch.core.models import Metadata
from epubsearch.extraction.metadata_extractor import MetadataExtractor


class TestExtractFromDirectory:
    @pytest.mark.asyncio
    async def test_every_readable_archive_delivered(
        self, tmp_path, epub_factory, opf_factory, caplog,
    ):
        epub_factory("a.epub", {}, opf=opf_factory(title="A", date="1887-11-01"))
        epub_factory("nested/b.epub", {}, opf=opf_factory(title="B", date="20231"))
        epub_factory("c.epub", {"x.txt": "no manifest"}, with_container=False)
        collected: dict[str, Metadata] = {}

        def handler(path: str, metadata: Metadata) -> None:
            collected[path] = metadata

        with caplog.at_level(logging.INFO, logger="epubsearch"):
            await MetadataExtractor(2).extract_from_directory(str(tmp_path), handler)

        assert collected[str(tmp_path / "a.epub")].year_released == 1887
        assert collected[str(tmp_path / "nested" / "b.epub")].year_released == 2023
        assert str(tmp_path / "c.epub") not in collected
        assert "errors=1" in caplog.text
        assert "Completed directory processing with some errors" in caplog.text

    @pytest.mark.asyncio
    async def test_unreadable_container_skipped(
        self, tmp_path, epub_factory, opf_factory, compression_patcher,
    ):
        bad = epub_factory("a_bad.epub", {}, opf=opf_factory(title="Bad"))
        compression_patcher(bad, "META-INF/container.xml", 9)
        epub_factory("b_good.epub", {}, opf=opf_factory(title="Good"))
        epub_factory("c_good.epub", {}, opf=opf_factory(title="Also good"))
        collected: dict[str, Metadata] = {}

        def handler(path: str, metadata: Metadata) -> None:
            collected[path] = metadata

        await MetadataExtractor(1).extract_from_directory(str(tmp_path), handler)

        assert sorted(m.title for m in collected.values()) == ["Also good", "Good"]
        assert str(bad) not in collected

    @pytest.mark.asyncio
    async def test_rfc3339_date(self, tmp_path, epub_factory, opf_factory):
        epub_factory("a.epub", {}, opf=opf_factory(date="2023-05-15T10:30:00Z"))
        years: list[int] = []

        async def handler(path: str, metadata: Metadata) -> None:
            years.append(metadata.year_released)

        await MetadataExtractor().extract_from_directory(str(tmp_path), handler)
        assert years == [2023]

    @pytest.mark.asyncio
    async def test_handler_error_aborts(self, tmp_path, epub_factory, opf_factory):
        for i in range(4):
            epub_factory(f"b{i}.epub", {}, opf=opf_factory(title=str(i)))

        def handler(path: str, metadata: Metadata) -> None:
            raise ValueError("rejected")

        with pytest.raises(HandlerError, match="rejected"):
            await MetadataExtractor(1).extract_from_directory(str(tmp_path), handler)

    @pytest.mark.asyncio
    async def test_missing_root(self, tmp_path):
        with pytest.raises(ArchiveIOError):
            await MetadataExtractor().extract_from_directory(str(tmp_path / "nope"), lambda p, m: None)

    @pytest.mark.asyncio
    async def test_already_cancelled(self, tmp_path, epub_factory, sample_opf):
        epub_factory("a.epub", {}, opf=sample_opf)
        token = CancelToken()
        token.cancel()
        seen: list[str] = []
        await MetadataExtractor().extract_from_directory(
            str(tmp_path), lambda p, m: seen.append(p), token,
        )
        assert seen == []
