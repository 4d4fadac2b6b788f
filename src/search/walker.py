# src/search/walker.py — v1
"""Recursive discovery of EPUB archives under a root path.

Entries are visited in lexical order, depth first. Symlinked directories are
not followed. Any listing error is fatal to the walk.
"""

from __future__ import annotations

import asyncio
import logging
import os
import stat
from collections.abc import AsyncIterator

from epubsearch.core.errors import ArchiveIOError

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = ".epub"


def is_archive_name(name: str) -> bool:
    """Case-insensitive check for the archive extension."""
    return name.lower().endswith(ARCHIVE_EXTENSION)


def read_directory(path: str) -> list[tuple[str, str, bool]]:
    """Sorted ``(name, full_path, is_dir)`` triples for one directory."""
    with os.scandir(path) as it:
        entries = [
            (entry.name, os.path.join(path, entry.name), entry.is_dir(follow_symlinks=False))
            for entry in it
        ]
    entries.sort()
    return entries


async def iter_archive_paths(root: str) -> AsyncIterator[str]:
    """Yield every archive path under ``root``.

    Directory listings run in worker threads so the event loop stays free.

    Raises:
        ArchiveIOError: The root or a subdirectory cannot be read.
    """
    try:
        root_stat = await asyncio.to_thread(os.lstat, root)
    except OSError as exc:
        raise ArchiveIOError(f"error walking directory: {exc}", root) from exc

    if not stat.S_ISDIR(root_stat.st_mode):
        if is_archive_name(os.path.basename(root)):
            yield root
        return

    async for path in _walk(root):
        yield path


async def _walk(directory: str) -> AsyncIterator[str]:
    try:
        entries = await asyncio.to_thread(read_directory, directory)
    except OSError as exc:
        raise ArchiveIOError(f"error walking directory: {exc}", directory) from exc

    for name, full_path, is_dir in entries:
        if is_dir:
            async for path in _walk(full_path):
                yield path
        elif is_archive_name(name):
            yield full_path
