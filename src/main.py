# src/main.py — v1
"""CLI entry point: search and metadata commands.

Usage:
    epubsearch search -d <directory> -p <pattern> [options]
    epubsearch metadata -d <directory> [options]

Results are written to stdout as JSON, only when the command succeeds.
Logs and errors go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from epubsearch.config.settings import Settings, load_settings
from epubsearch.core.cancellation import CancelToken
from epubsearch.logging.logger import setup_logging
from epubsearch.version import __version__

logger = logging.getLogger(__name__)

LOG_LEVEL_CHOICES = ("disabled", "error", "warn", "info", "debug", "trace")


class CommandError(Exception):
    """Invalid command-line usage detected after argument parsing."""


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_cli_settings(args)
        setup_logging(
            settings.log_level,
            log_format=settings.log_format,
            log_file=settings.log_file or None,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
        )
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.debug("Fatal error", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def cli() -> None:
    """Console-script wrapper around main()."""
    sys.exit(main())


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="epubsearch",
        description=f"epubsearch v{__version__}: full-text search across EPUB collections",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- search ---
    p_search = subparsers.add_parser(
        "search", help="Search EPUB files for a text or regex pattern",
    )
    p_search.add_argument(
        "-d", "--directory", required=True,
        help="Directory containing EPUB files",
    )
    p_search.add_argument(
        "-p", "--pattern", required=True,
        help="Search pattern",
    )
    p_search.add_argument(
        "--regex", action="store_true",
        help="Treat pattern as a regular expression",
    )
    p_search.add_argument(
        "-i", "--ignore-case", action="store_true",
        help="Case-insensitive search (text mode only)",
    )
    p_search.add_argument(
        "-c", "--context", type=_non_negative_int, default=0,
        help="Number of context lines around each match (default: 0)",
    )
    _add_threads_argument(p_search)
    p_search.add_argument(
        "--extract-metadata", action="store_true",
        help="Extract and include metadata in results",
    )
    p_search.add_argument(
        "--author", default="",
        help="Filter by author (requires --extract-metadata)",
    )
    p_search.add_argument(
        "--series", default="",
        help="Filter by series (requires --extract-metadata)",
    )
    p_search.add_argument(
        "--title", default="",
        help="Filter by title (requires --extract-metadata)",
    )
    p_search.add_argument(
        "--files-in", action="append", default=[],
        help="Comma-separated EPUB paths to restrict the search to (repeatable)",
    )
    p_search.add_argument(
        "--timeout", type=float, default=None,
        help="Abort the search after this many seconds",
    )
    _add_output_arguments(p_search)
    p_search.set_defaults(func=_cmd_search)

    # --- metadata ---
    p_meta = subparsers.add_parser(
        "metadata", help="Extract metadata from every EPUB file",
    )
    p_meta.add_argument(
        "-d", "--directory", required=True,
        help="Directory containing EPUB files",
    )
    _add_threads_argument(p_meta)
    _add_output_arguments(p_meta)
    p_meta.set_defaults(func=_cmd_metadata)

    return parser


def _add_threads_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-t", "--threads", type=_non_negative_int, default=None,
        help="Maximum number of worker threads (default: CPU count)",
    )


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--pretty", action="store_true",
        help="Pretty-print JSON output",
    )
    parser.add_argument(
        "--log-level", choices=LOG_LEVEL_CHOICES, default=None,
        help="Logging level (default: warn)",
    )


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from exc
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _load_cli_settings(args: argparse.Namespace) -> Settings:
    """Settings from .env with CLI flags layered on top."""
    overrides: dict[str, object] = {}
    if args.threads is not None:
        overrides["max_threads"] = args.threads
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if getattr(args, "extract_metadata", False):
        overrides["extract_metadata"] = True
    return load_settings(**overrides)


def _split_files_in(values: list[str]) -> list[str]:
    """Flatten repeated, comma-separated --files-in values."""
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


def _require_directory(directory: str) -> None:
    if not os.path.exists(directory):
        raise CommandError(f"directory does not exist: {directory}")


async def _cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    """Execute a directory search and print the JSON envelope."""
    from epubsearch.api.facade import build_search_request, render_json, search_directory

    if (args.author or args.series or args.title) and not settings.extract_metadata:
        raise CommandError(
            "metadata filters (--author, --series, --title) require --extract-metadata"
        )
    _require_directory(args.directory)

    request = build_search_request(
        args.pattern,
        is_regex=args.regex,
        ignore_case=args.ignore_case,
        context=args.context,
        author=args.author,
        series=args.series,
        title=args.title,
        files_in=_split_files_in(args.files_in),
    )
    token = CancelToken.with_timeout(args.timeout) if args.timeout else None

    try:
        output = await search_directory(args.directory, request, settings, token)
    except Exception as exc:
        raise CommandError(f"search failed: {exc}") from exc

    print(render_json(output, pretty=args.pretty))
    return 0


async def _cmd_metadata(args: argparse.Namespace, settings: Settings) -> int:
    """Extract metadata for every archive and print it as one JSON object."""
    from epubsearch.api.facade import extract_directory_metadata, render_metadata_json

    _require_directory(args.directory)

    metadata = await extract_directory_metadata(args.directory, settings)
    print(render_metadata_json(metadata, pretty=args.pretty))
    return 0


if __name__ == "__main__":
    sys.exit(main())
