# tests/unit/logging/test_logger.py — v1
"""Tests for logging/logger.py: formatters and setup."""

from __future__ import annotations

import io
import json
import logging

import pytest

from epubsearch.logging.context import archive_context
from epubsearch.logging.logger import (
    ROOT_LOGGER_NAME,
    JsonFormatter,
    TextFormatter,
    get_logger,
    resolve_level,
    setup_logging,
)


def _record(msg: str = "hello", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord("epubsearch.test", level, __file__, 1, msg, (), None)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestFormatters:
    def test_json_formatter(self):
        with archive_context("/b/a.epub", "ch1.txt"):
            out = json.loads(JsonFormatter().format(_record()))
        assert out["message"] == "hello"
        assert out["level"] == "INFO"
        assert out["context"] == {"archive": "/b/a.epub", "entry": "ch1.txt"}

    def test_json_without_context(self):
        out = json.loads(JsonFormatter().format(_record()))
        assert "context" not in out

    def test_text_formatter(self):
        with archive_context("/b/a.epub"):
            line = TextFormatter().format(_record("scan done", logging.WARNING))
        assert "[WARNING ]" in line
        assert "[/b/a.epub]" in line
        assert line.endswith("- scan done")


class TestResolveLevel:
    @pytest.mark.parametrize(
        "name,level",
        [
            ("debug", logging.DEBUG),
            ("trace", logging.DEBUG),
            ("INFO", logging.INFO),
            ("warn", logging.WARNING),
            ("error", logging.ERROR),
            ("disabled", None),
            ("bogus", logging.WARNING),
        ],
    )
    def test_levels(self, name, level):
        assert resolve_level(name) == level


class TestSetupLogging:
    def test_writes_to_stream(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging("info", stream=stream)
        get_logger("unit").info("visible")
        get_logger("unit").debug("hidden")
        output = stream.getvalue()
        assert "visible" in output
        assert "hidden" not in output

    def test_json_format(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging("warn", log_format="json", stream=stream)
        get_logger("unit").warning("careful")
        assert json.loads(stream.getvalue().strip())["message"] == "careful"

    def test_disabled(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging("disabled", stream=stream)
        get_logger("unit").error("silent")
        assert stream.getvalue() == ""

    def test_reinit_does_not_duplicate(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging("info", stream=stream)
        setup_logging("info", stream=stream)
        get_logger("unit").info("once")
        assert stream.getvalue().count("once") == 1

    def test_log_file(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "search.log"
        setup_logging("info", log_file=str(log_file), stream=io.StringIO())
        get_logger("unit").info("to file")
        for handler in restore_root_logger.handlers:
            handler.flush()
        assert "to file" in log_file.read_text(encoding="utf-8")
        for handler in restore_root_logger.handlers:
            handler.close()

    def test_get_logger_namespace(self):
        assert get_logger("x").name == "epubsearch.x"
