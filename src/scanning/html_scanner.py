# src/scanning/html_scanner.py — v1
"""HTML/XHTML entry scanner.

Streams the entry through a pooled BlockTextTokenizer, then matches the
resulting logical lines with the same context-window rule as plain text.
Malformed markup never aborts a scan; cancellation returns None.
"""

from __future__ import annotations

import codecs
import logging
import re
import zipfile
import zlib
from typing import TYPE_CHECKING, BinaryIO

from bs4.dammit import EncodingDetector

from epubsearch.core.models import Match
from epubsearch.scanning.context_window import build_context_matches
from epubsearch.scanning.pools import ScratchPool
from epubsearch.scanning.tokenizer import (
    DEFAULT_CHECK_INTERVAL,
    BlockTextTokenizer,
    TokenizerCancelled,
    tokenizer_pool,
)

if TYPE_CHECKING:
    from epubsearch.core.cancellation import CancelToken

logger = logging.getLogger(__name__)

CHUNK_SIZE = 32 * 1024

# A declaration readable as ASCII cannot be telling the truth about these.
_ASCII_INCOMPATIBLE = ("utf-16", "utf-32")


def scan_html(
    stream: BinaryIO,
    pattern: re.Pattern[str],
    entry_name: str,
    context_lines: int,
    token: CancelToken | None = None,
    pool: ScratchPool[BlockTextTokenizer] | None = None,
    check_interval: int = DEFAULT_CHECK_INTERVAL,
) -> list[Match] | None:
    """Scan a markup stream and return its matches, or None if cancelled."""
    with (pool or tokenizer_pool).acquire() as tokenizer:
        tokenizer.bind(token, check_interval)
        try:
            _tokenize_stream(tokenizer, stream, entry_name, token)
        except TokenizerCancelled:
            logger.debug("HTML scan of %s cancelled", entry_name)
            return None
        return build_context_matches(tokenizer.lines, pattern, entry_name, context_lines)


def _tokenize_stream(
    tokenizer: BlockTextTokenizer,
    stream: BinaryIO,
    entry_name: str,
    token: CancelToken | None,
) -> None:
    decoder: codecs.IncrementalDecoder | None = None
    try:
        while True:
            if token is not None and token.done():
                raise TokenizerCancelled()
            chunk = stream.read(CHUNK_SIZE)
            if decoder is None:
                decoder, chunk = _decoder_for(chunk)
            text = decoder.decode(chunk, final=not chunk)
            if text:
                tokenizer.feed(text)
            if not chunk:
                break
        tokenizer.close()
    except (OSError, EOFError, zipfile.BadZipFile, zlib.error) as exc:
        logger.error("Error reading html file %s: %s", entry_name, exc)
    except (AssertionError, ValueError) as exc:
        # _markupbase reports some malformed declarations with AssertionError
        logger.error("Error tokenizing html file %s: %s", entry_name, exc)
    tokenizer.flush_line()


def _decoder_for(first_chunk: bytes) -> tuple[codecs.IncrementalDecoder, bytes]:
    """Pick a decoder from the byte-order mark or the markup's declaration."""
    data, encoding = EncodingDetector.strip_byte_order_mark(first_chunk)
    if encoding is None:
        declared = EncodingDetector.find_declared_encoding(data, is_html=True)
        if declared and not declared.lower().startswith(_ASCII_INCOMPATIBLE):
            encoding = declared
    try:
        factory = codecs.getincrementaldecoder(encoding or "utf-8")
    except LookupError:
        logger.debug("Unknown declared encoding %r, using utf-8", encoding)
        factory = codecs.getincrementaldecoder("utf-8")
    return factory(errors="replace"), data
