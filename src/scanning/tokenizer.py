# src/scanning/tokenizer.py — v1
"""Block-aware HTML tokenizer that turns markup into logical text lines.

Built on ``html.parser.HTMLParser``, the streaming tokenizer that
BeautifulSoup's ``html.parser`` builder drives. Text tokens accumulate in a
line buffer; block-level tags close the current line.
"""

from __future__ import annotations

from html.parser import HTMLParser
from typing import TYPE_CHECKING

from epubsearch.scanning.pools import LineBuffer, ScratchPool

if TYPE_CHECKING:
    from epubsearch.core.cancellation import CancelToken

BLOCK_LEVEL_TAGS: frozenset[str] = frozenset({
    "p", "div", "br",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "li", "blockquote", "hr", "pre", "tr", "table",
})

DEFAULT_CHECK_INTERVAL = 100


class TokenizerCancelled(Exception):
    """Raised from inside a callback when the bound token is done."""


class BlockTextTokenizer(HTMLParser):
    """Resettable tokenizer producing whitespace-normalized lines."""

    def __init__(self) -> None:
        self.lines = LineBuffer(256)
        self._parts: list[str] = []
        self._in_text = False
        self.token_count = 0
        self._token: CancelToken | None = None
        self._check_interval = DEFAULT_CHECK_INTERVAL
        super().__init__(convert_charrefs=True)

    def reset(self) -> None:
        super().reset()
        self.lines.reset()
        self._parts.clear()
        self._in_text = False
        self.token_count = 0
        self._token = None
        self._check_interval = DEFAULT_CHECK_INTERVAL

    def bind(self, token: CancelToken | None, check_interval: int = DEFAULT_CHECK_INTERVAL) -> None:
        """Attach the cancellation token polled every ``check_interval`` tokens."""
        self._token = token
        self._check_interval = max(1, check_interval)

    def flush_line(self) -> None:
        line = " ".join("".join(self._parts).split())
        if line:
            self.lines.append(line)
        self._parts.clear()

    # --- HTMLParser callbacks ---

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._tick()
        if tag in BLOCK_LEVEL_TAGS:
            self.flush_line()

    def handle_endtag(self, tag: str) -> None:
        self._tick()
        if tag in BLOCK_LEVEL_TAGS:
            self.flush_line()

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._tick()
        if tag in BLOCK_LEVEL_TAGS:
            self.flush_line()

    def handle_data(self, data: str) -> None:
        # a text run split across feed() calls arrives as several events
        continued = self._in_text
        self._tick()
        if not continued:
            self._parts.append(" ")
        self._parts.append(data)
        self._in_text = True

    def handle_comment(self, data: str) -> None:
        self._tick()

    def handle_decl(self, decl: str) -> None:
        self._tick()

    def handle_pi(self, data: str) -> None:
        self._tick()

    def unknown_decl(self, data: str) -> None:
        self._tick()

    def _tick(self) -> None:
        self._in_text = False
        if (
            self._token is not None
            and self.token_count % self._check_interval == 0
            and self._token.done()
        ):
            raise TokenizerCancelled()
        self.token_count += 1


tokenizer_pool: ScratchPool[BlockTextTokenizer] = ScratchPool(
    BlockTextTokenizer, BlockTextTokenizer.reset,
)
