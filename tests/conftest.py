# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides EPUB archive builders and sample OPF documents. Archives are
written with zipfile into tmp_path; nothing touches the network.
"""

from __future__ import annotations

import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from epubsearch.cache.pattern_cache import PatternCache
from epubsearch.logging.context import clear_context

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{opf_path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

SAMPLE_OPF = """<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="2.0" unique-identifier="uid">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/"
            xmlns:opf="http://www.idpf.org/2007/opf">
    <dc:title>The Hound of the Baskervilles</dc:title>
    <dc:creator opf:role="aut">John Doe</dc:creator>
    <dc:creator opf:role="aut">Jane Smith</dc:creator>
    <dc:subject>Mystery</dc:subject>
    <dc:subject>Detective</dc:subject>
    <dc:date>2023-05-15T10:30:00Z</dc:date>
    <dc:identifier id="uid" opf:scheme="ISBN">9780140437867</dc:identifier>
    <meta name="calibre:series" content="Sherlock Holmes"/>
    <meta name="calibre:series_index" content="3"/>
  </metadata>
</package>
"""


def make_opf(
    title: str = "Untitled",
    authors: tuple[str, ...] = ("Anonymous",),
    date: str = "",
    series: str = "",
    extra: str = "",
) -> str:
    """Minimal OPF 2 package document."""
    creators = "\n".join(f"    <dc:creator>{a}</dc:creator>" for a in authors)
    date_el = f"    <dc:date>{date}</dc:date>" if date else ""
    series_el = f'    <meta name="calibre:series" content="{series}"/>' if series else ""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="2.0">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:title>{title}</dc:title>
{creators}
{date_el}
{series_el}
{extra}
  </metadata>
</package>
"""


def write_epub(
    path: Path,
    entries: dict[str, str | bytes],
    opf: str | None = None,
    opf_path: str = "OEBPS/content.opf",
    with_container: bool = True,
) -> Path:
    """Write an EPUB-shaped ZIP. Entries keep their insertion order."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("mimetype", "application/epub+zip", compress_type=zipfile.ZIP_STORED)
        if with_container:
            zf.writestr("META-INF/container.xml", CONTAINER_XML.format(opf_path=opf_path))
        if opf is not None:
            zf.writestr(opf_path, opf)
        for name, content in entries.items():
            zf.writestr(name, content)
    return path


def set_compression_method(path: Path, entry_name: str, method: int) -> Path:
    """Rewrite an entry's method in the central directory, leaving the data as is.

    zipfile trusts the central directory, so reading the entry afterwards
    fails the way an archive built with an unsupported codec does.
    """
    data = bytearray(path.read_bytes())
    encoded = entry_name.encode("utf-8")
    offset = data.find(b"PK\x01\x02")
    while offset != -1:
        name_len = int.from_bytes(data[offset + 28:offset + 30], "little")
        if bytes(data[offset + 46:offset + 46 + name_len]) == encoded:
            data[offset + 10:offset + 12] = method.to_bytes(2, "little")
        offset = data.find(b"PK\x01\x02", offset + 46)
    path.write_bytes(bytes(data))
    return path


EpubFactory = Callable[..., Path]


@pytest.fixture
def epub_factory(tmp_path: Path) -> EpubFactory:
    """Build EPUBs under tmp_path: epub_factory("a.epub", {"ch1.txt": "..."})."""

    def _build(name: str, entries: dict[str, str | bytes], **kwargs) -> Path:
        return write_epub(tmp_path / name, entries, **kwargs)

    return _build


@pytest.fixture
def sample_opf() -> str:
    return SAMPLE_OPF


@pytest.fixture
def opf_factory() -> Callable[..., str]:
    return make_opf


@pytest.fixture
def pattern_cache() -> PatternCache:
    """Isolated cache so tests never share the process-wide instance."""
    return PatternCache(max_size=16)


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()


@pytest.fixture
def compression_patcher() -> Callable[[Path, str, int], Path]:
    return set_compression_method
