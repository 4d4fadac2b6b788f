# src/extraction/metadata_extractor.py — v1
"""Bibliographic metadata extraction from an EPUB's OPF package file.

Locates the OPF through META-INF/container.xml (falling back to the first
.opf entry), parses it leniently, and derives title, authors, subjects,
release year, series and identifiers.

Element and attribute names are matched on their local part, so ``dc:title``
and an unprefixed ``title`` are treated alike.
"""

from __future__ import annotations

import inspect
import logging
import os
import re
import xml.etree.ElementTree as ET
import zipfile
import zlib
from collections.abc import AsyncIterator, Awaitable, Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime

from epubsearch.core.cancellation import CancelToken
from epubsearch.core.errors import (
    ArchiveError,
    ArchiveFormatError,
    HandlerError,
    ManifestNotFoundError,
    SearchCancelledError,
)
from epubsearch.core.models import Metadata
from epubsearch.extraction.archive import CONTAINER_ENTRY, file_size, open_archive
from epubsearch.extraction.identifiers import (
    detect_identifier_type,
    identifier_key_from_meta_name,
    identifier_key_from_property,
    normalize_identifier_key,
)
from epubsearch.logging.context import archive_context
from epubsearch.search.pipeline import BoundedPipeline, run_blocking, shutdown_executor
from epubsearch.search.walker import iter_archive_paths

logger = logging.getLogger(__name__)

OPF_EXTENSION = ".opf"
OPF_MEDIA_TYPE = "application/oebps-package+xml"

SERIES_META_NAME = "calibre:series"
SERIES_INDEX_META_NAME = "calibre:series_index"

_RFC3339_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$",
    re.IGNORECASE,
)
_YEAR_RE = re.compile(r"^[0-9]{4}$")

MetadataHandler = Callable[[str, Metadata], Awaitable[None] | None]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1].rsplit(":", 1)[-1]


def _children(element: ET.Element | None, name: str) -> list[ET.Element]:
    if element is None:
        return []
    return [child for child in element if isinstance(child.tag, str) and _local_name(child.tag) == name]


def _attr(element: ET.Element, name: str) -> str:
    for key, value in element.attrib.items():
        if _local_name(key) == name:
            return value
    return ""


def _text(element: ET.Element) -> str:
    return element.text or ""


def parse_release_year(date: str) -> int:
    """Year from an OPF date: RFC 3339 first, else a leading 4-digit year, else 0."""
    date = date.strip()
    if not date:
        return 0
    if _RFC3339_RE.match(date):
        try:
            return datetime.fromisoformat(date).year
        except ValueError:
            pass
    if len(date) >= 4 and _YEAR_RE.match(date[:4]):
        return int(date[:4])
    return 0


def parse_opf(document: str) -> Metadata:
    """Build Metadata from an already-decoded OPF document.

    Raises:
        ET.ParseError: The document is not well-formed XML.
    """
    root = ET.fromstring(document)
    meta_el = next(iter(_children(root, "metadata")), None)

    titles = _children(meta_el, "title")
    dates = _children(meta_el, "date")
    metadata = Metadata(
        title=_text(titles[0]).strip() if titles else "",
        authors=[_text(el).strip() for el in _children(meta_el, "creator")],
        genres=[_text(el).strip() for el in _children(meta_el, "subject")],
        year_released=parse_release_year(_text(dates[0])) if dates else 0,
    )

    for identifier in _children(meta_el, "identifier"):
        value = _text(identifier)
        if not value:
            continue
        key = normalize_identifier_key(_attr(identifier, "scheme"))
        if not key:
            key = detect_identifier_type(value)
        if key:
            metadata.identifiers[key] = value.strip()

    for meta in _children(meta_el, "meta"):
        name = _attr(meta, "name")
        content = _attr(meta, "content")
        prop = _attr(meta, "property")
        value = _text(meta)

        if name == SERIES_META_NAME:
            metadata.series = content
        elif name == SERIES_INDEX_META_NAME:
            try:
                metadata.series_position = float(content)
            except ValueError:
                logger.debug("Ignoring non-numeric series index %r", content)

        if name and content:
            key = identifier_key_from_meta_name(name)
            if key:
                metadata.identifiers[key] = content.strip()

        if prop and value:
            key = identifier_key_from_property(prop)
            if key:
                metadata.identifiers[key] = value.strip()

    return metadata


def find_opf_path(archive: zipfile.ZipFile) -> str:
    """Locate the OPF entry name.

    Returns an empty string when the archive has neither container.xml nor
    any .opf entry.

    Raises:
        ValueError: container.xml is unreadable or names no OPF rootfile.
    """
    names = archive.namelist()
    if CONTAINER_ENTRY not in names:
        for name in names:
            if name.lower().endswith(OPF_EXTENSION):
                return name
        return ""

    try:
        container = ET.fromstring(archive.read(CONTAINER_ENTRY))
    except ET.ParseError as exc:
        raise ValueError(f"failed to parse container.xml: {exc}") from exc

    for rootfiles in _children(container, "rootfiles"):
        for rootfile in _children(rootfiles, "rootfile"):
            if _attr(rootfile, "media-type") == OPF_MEDIA_TYPE:
                return _attr(rootfile, "full-path")

    raise ValueError("no OPF rootfile found in container.xml")


class MetadataExtractor:
    """Extract Metadata from single archives or whole directories.

    Args:
        max_threads: Worker count for directory extraction (<= 0 = CPU count).
    """

    def __init__(self, max_threads: int = 0) -> None:
        if max_threads <= 0:
            max_threads = os.cpu_count() or 1
        self._max_threads = max_threads

    @property
    def max_threads(self) -> int:
        return self._max_threads

    def extract_from_file(self, archive_path: str, token: CancelToken | None = None) -> Metadata:
        """Parse the metadata of one archive.

        Raises:
            ArchiveIOError: The archive cannot be opened.
            ArchiveFormatError: The container, its descriptor or OPF is unusable.
            SearchCancelledError: The token is already done.
        """
        if token is not None:
            token.raise_if_cancelled()

        with open_archive(archive_path) as archive, archive_context(archive_path):
            size = file_size(archive_path)
            try:
                opf_path = find_opf_path(archive)
            except (
                ValueError, OSError, KeyError, RuntimeError, NotImplementedError,
                zipfile.BadZipFile, zlib.error,
            ) as exc:
                raise ArchiveFormatError(f"failed to find opf path: {exc}", archive_path, size) from exc
            if not opf_path:
                raise ManifestNotFoundError(
                    f"{CONTAINER_ENTRY} not found and no {OPF_EXTENSION} file in archive",
                    archive_path,
                    size,
                )

            try:
                raw = archive.read(opf_path)
            except KeyError as exc:
                raise ArchiveFormatError(
                    f"opf file '{opf_path}' not found in epub", archive_path, size,
                ) from exc
            except (OSError, RuntimeError, NotImplementedError, zipfile.BadZipFile, zlib.error) as exc:
                raise ArchiveFormatError(
                    f"failed to open opf file '{opf_path}': {exc}", archive_path, size,
                ) from exc

            # many epubs declare the wrong charset; decode as utf-8 and let
            # the parser ignore the declaration
            try:
                return parse_opf(raw.decode("utf-8", errors="replace"))
            except ET.ParseError as exc:
                raise ArchiveFormatError(
                    f"failed to parse opf file '{opf_path}': {exc}", archive_path, size,
                ) from exc

    async def extract_from_directory(
        self,
        root: str,
        handler: MetadataHandler,
        token: CancelToken | None = None,
    ) -> None:
        """Extract metadata for every archive under ``root``.

        Per-file errors are logged and skipped. A handler error stops the
        whole run and is raised as HandlerError.
        """
        token = token or CancelToken()
        if token.done():
            logger.debug("Metadata extraction for %s cancelled before start", root)
            return

        run_token = token.child()
        counts = _FileCounts()
        executor = ThreadPoolExecutor(
            max_workers=self._max_threads, thread_name_prefix="epubsearch-meta",
        )

        async def discover() -> AsyncIterator[str]:
            async for path in iter_archive_paths(root):
                counts.found()
                yield path

        async def process(path: str) -> None:
            try:
                metadata = await run_blocking(executor, self.extract_from_file, path, run_token)
            except SearchCancelledError:
                raise
            except ArchiveError as exc:
                processed, errors, total = counts.failed()
                logger.warning(
                    "Error processing file %s: %s (processed=%d, errors=%d, total=%d)",
                    path, exc, processed, errors, total,
                )
                return
            except Exception:
                processed, errors, total = counts.failed()
                logger.exception(
                    "Unexpected error processing file %s (processed=%d, errors=%d, total=%d)",
                    path, processed, errors, total,
                )
                return

            try:
                outcome = handler(path, metadata)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                raise HandlerError(path, exc) from exc
            counts.processed_one()

        pipeline: BoundedPipeline[str] = BoundedPipeline(run_token, self._max_threads)
        try:
            await pipeline.run(discover(), process)
        finally:
            run_token.cancel()
            await shutdown_executor(executor)
            _log_summary(root, counts)

        if pipeline.interrupted:
            token.raise_if_cancelled()


@dataclass
class _FileCounts:
    """Running totals; only touched from the event loop."""

    total: int = 0
    processed: int = 0
    errors: int = 0

    def found(self) -> None:
        self.total += 1

    def processed_one(self) -> None:
        self.processed += 1

    def failed(self) -> tuple[int, int, int]:
        self.errors += 1
        return self.processed, self.errors, self.total


def _log_summary(root: str, counts: _FileCounts) -> None:
    if counts.errors:
        logger.info(
            "Completed directory processing with some errors: %s (found=%d, processed=%d, errors=%d)",
            root, counts.total, counts.processed, counts.errors,
        )
    else:
        logger.info(
            "Completed directory processing successfully: %s (processed=%d)",
            root, counts.processed,
        )
