# src/logging/logger.py — v1
"""Logger factory with JSON and text formatters.

Console output goes to stderr so that JSON results on stdout stay clean.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from epubsearch.logging.context import get_context

ROOT_LOGGER_NAME = "epubsearch"

# CLI-style level names; "disabled" silences the package entirely
LEVEL_NAMES: dict[str, int | None] = {
    "disabled": None,
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class JsonFormatter(logging.Formatter):
    """Structured JSON log formatter, one object per line."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context_dict = ctx.as_dict()
        if context_dict:
            log_entry["context"] = context_dict

        # Extra data passed via record.__dict__
        if hasattr(record, "data") and record.data:  # type: ignore[attr-defined]
            log_entry["data"] = record.data  # type: ignore[attr-defined]

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable console formatter."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            datetime.now(timezone.utc).strftime("%H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if ctx.archive:
            parts.append(f"[{ctx.archive}]")
        if ctx.entry:
            parts.append(f"({ctx.entry})")
        parts.append(f"- {record.getMessage()}")
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Configuration is applied by setup_logging()."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def resolve_level(level: str) -> int | None:
    """Map a level name to a logging level; None means disabled.

    Unknown names fall back to WARNING.
    """
    return LEVEL_NAMES.get(level.strip().lower(), logging.WARNING)


def setup_logging(
    level: str = "WARNING",
    log_format: str = "text",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 5,
    stream: TextIO | None = None,
) -> None:
    """Configure the root epubsearch logger.

    Args:
        level: Log level (disabled, trace, debug, info, warn, error).
        log_format: Output format ("json" or "text").
        log_file: Path to log file (None = console only).
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
        stream: Console stream (defaults to stderr).
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Remove existing handlers to avoid duplicates on re-init
    root_logger.handlers.clear()

    resolved = resolve_level(level)
    if resolved is None:
        root_logger.setLevel(logging.CRITICAL + 1)
        root_logger.addHandler(logging.NullHandler())
        return
    root_logger.setLevel(resolved)

    formatter: logging.Formatter
    if log_format == "json":
        formatter = JsonFormatter()
    else:
        formatter = TextFormatter()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        from epubsearch.logging.handlers import create_rotating_handler

        file_handler = create_rotating_handler(
            log_file, rotation=rotation, retention=retention
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if level.strip().lower() not in LEVEL_NAMES:
        root_logger.warning("Unknown log level %r, falling back to WARNING", level)
