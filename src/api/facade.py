# src/api/facade.py — v1
"""Public API facade: search a directory and collect the results.

Usage:
    from epubsearch.api.facade import build_search_request, search_directory
    request = build_search_request("Holmes", ignore_case=True)
    output = await search_directory("/books", request)
    print(render_json(output, pretty=True))
"""

from __future__ import annotations

import json
import logging

from epubsearch.api.models import SearchOutput
from epubsearch.cache.pattern_cache import default_pattern_cache
from epubsearch.config.settings import Settings, load_settings
from epubsearch.core.cancellation import CancelToken
from epubsearch.core.models import (
    Metadata,
    RegexQuery,
    SearchFilters,
    SearchQuery,
    SearchRequest,
    SearchResult,
    TextQuery,
)
from epubsearch.extraction.archive_extractor import ArchiveExtractor
from epubsearch.extraction.metadata_extractor import MetadataExtractor
from epubsearch.search.orchestrator import FileSearch

logger = logging.getLogger(__name__)


def build_search_request(
    pattern: str,
    is_regex: bool = False,
    ignore_case: bool = False,
    context: int = 0,
    author: str = "",
    series: str = "",
    title: str = "",
    files_in: list[str] | None = None,
) -> SearchRequest:
    """Assemble a SearchRequest from flat, CLI-style arguments.

    Filters are only attached when at least one of them is set.
    """
    if is_regex:
        query = SearchQuery(is_regex=True, regex=RegexQuery(pattern=pattern))
    else:
        query = SearchQuery(text=TextQuery(value=pattern, ignore_case=ignore_case))

    filters = None
    if author or series or title or files_in:
        filters = SearchFilters(
            author_equals=author,
            series_equals=series,
            title_equals=title,
            files_in=list(files_in or []),
        )
    return SearchRequest(query=query, filters=filters, context=context)


def build_file_search(root: str, settings: Settings) -> FileSearch:
    """FileSearch wired from settings."""
    return FileSearch(
        root,
        max_threads=settings.max_threads,
        extract_metadata=settings.extract_metadata,
        pattern_cache=default_pattern_cache(settings.pattern_cache_size),
        extractor=ArchiveExtractor(
            html_check_interval=settings.html_cancel_check_interval,
            max_line_length=settings.max_line_length,
        ),
        metadata_extractor=MetadataExtractor(settings.max_threads),
    )


async def search_directory(
    root: str,
    request: SearchRequest,
    settings: Settings | None = None,
    token: CancelToken | None = None,
) -> SearchOutput:
    """Search ``root`` and collect every streamed result.

    Args:
        root: Directory of EPUB archives.
        request: Query, filters and context size.
        settings: Global settings. Loaded from .env if None.
        token: Cancellation token; a deadline turns into DeadlineExceededError.

    Returns:
        SearchOutput with results and summary totals.
    """
    settings = settings or load_settings()
    results: list[SearchResult] = []
    def collect(result: SearchResult) -> None:
        results.append(result)

    await build_file_search(root, settings).search(request, collect, token)

    output = SearchOutput.from_results(results)
    logger.info(
        "Search complete: files=%d, matches=%d",
        output.summary.total_files, output.summary.total_matches,
    )
    return output


async def extract_directory_metadata(
    root: str,
    settings: Settings | None = None,
    token: CancelToken | None = None,
) -> dict[str, Metadata]:
    """Metadata for every readable archive under ``root``, keyed by path."""
    settings = settings or load_settings()
    collected: dict[str, Metadata] = {}

    def collect(path: str, metadata: Metadata) -> None:
        collected[path] = metadata

    await MetadataExtractor(settings.max_threads).extract_from_directory(root, collect, token)
    return dict(sorted(collected.items()))


def render_json(output: SearchOutput, pretty: bool = False) -> str:
    """Serialize the envelope with camelCase keys; metadata is omitted when absent."""
    return output.model_dump_json(by_alias=True, exclude_none=True, indent=2 if pretty else None)


def render_metadata_json(metadata: dict[str, Metadata], pretty: bool = False) -> str:
    """Serialize a path-to-metadata mapping."""
    return json.dumps(
        {path: meta.model_dump(mode="json", by_alias=True) for path, meta in metadata.items()},
        indent=2 if pretty else None,
        ensure_ascii=False,
    )
