# src/extraction/archive.py — v1
"""Opening EPUB containers and classifying their entries.

Entry classification and the skip policy are pure lookups over closed sets
of names and extensions.
"""

from __future__ import annotations

import os
import posixpath
import zipfile
from typing import Literal

from epubsearch.core.errors import ArchiveFormatError, ArchiveIOError

MIMETYPE_ENTRY = "mimetype"
CONTAINER_ENTRY = "META-INF/container.xml"

EntryKind = Literal["text", "html"]

ENTRY_KINDS: dict[str, EntryKind] = {
    ".txt": "text",
    ".html": "html",
    ".xhtml": "html",
    ".xml": "html",
}

# Navigation, front/back matter and other non-content documents
SKIPPED_BASENAMES: frozenset[str] = frozenset({
    "cover.xhtml", "toc.xhtml", "titlepage.xhtml", "copyright.xhtml",
    "imprint.xhtml", "dedication.xhtml", "dedication-1.xhtml",
    "license.xhtml", "license-1.xhtml", "colophon.xhtml",
    "about.xhtml", "about-1.xhtml", "acknowledgments.xhtml",
    "appendix.xhtml", "afterword.xhtml", "notes.xhtml",
    "bibliography.xhtml", "index.xhtml", "epilogue.xhtml",
    "glossary.xhtml", "extra.xhtml", "ads.xhtml", "trailer.xhtml",
})

PROMOTIONAL_KEYWORDS: tuple[str, ...] = ("sample", "advert", "promo", "teaser")


def file_size(path: str) -> int | None:
    """Size of ``path`` in bytes, or None if it cannot be stat'ed."""
    try:
        return os.stat(path).st_size
    except OSError:
        return None


def open_archive(path: str) -> zipfile.ZipFile:
    """Open an EPUB as a ZIP container.

    Raises:
        ArchiveIOError: The file is missing or unreadable.
        ArchiveFormatError: The file is not a ZIP container.
    """
    size = file_size(path)
    try:
        return zipfile.ZipFile(path)
    except FileNotFoundError as exc:
        raise ArchiveIOError("failed to open epub: file not found", path) from exc
    except zipfile.BadZipFile as exc:
        raise ArchiveFormatError(f"failed to open epub: {exc}", path, size) from exc
    except OSError as exc:
        raise ArchiveIOError(f"failed to open epub: {exc}", path, size) from exc


def should_skip_entry(name: str) -> bool:
    """Whether an archive entry is excluded from content scanning."""
    if name in (MIMETYPE_ENTRY, CONTAINER_ENTRY):
        return True

    lower_name = name.lower()
    if posixpath.basename(lower_name) in SKIPPED_BASENAMES:
        return True

    return any(keyword in lower_name for keyword in PROMOTIONAL_KEYWORDS)


def classify_entry(name: str) -> EntryKind | None:
    """Scanner kind for an entry name, or None if it is not scanned."""
    _, ext = posixpath.splitext(name)
    return ENTRY_KINDS.get(ext.lower())
