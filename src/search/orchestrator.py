# src/search/orchestrator.py — v1
"""Concurrent search across a directory of EPUB archives.

Flow: validate the query, compile the pattern through the pattern cache,
walk the root for archives, and stream each archive with at least one
surviving match to the caller's handler.

One producer walks the directory; ``max_threads`` workers pull paths from a
single-slot queue and run the blocking archive work on a dedicated thread
pool. Results arrive in completion order across archives. Within an archive,
matches follow entry order, then line order.
"""

from __future__ import annotations

import inspect
import logging
import os
import re
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from concurrent.futures import ThreadPoolExecutor

from epubsearch.cache.pattern_cache import PatternCache, default_pattern_cache
from epubsearch.core.cancellation import CancelToken
from epubsearch.core.errors import (
    ArchiveError,
    HandlerError,
    InvalidQueryError,
    SearchCancelledError,
)
from epubsearch.core.models import Match, Metadata, SearchQuery, SearchRequest, SearchResult
from epubsearch.extraction.archive_extractor import ArchiveExtractor
from epubsearch.extraction.metadata_extractor import MetadataExtractor
from epubsearch.logging.context import set_search_context
from epubsearch.search.filters import is_allowed, matches_metadata_filters, normalize_allow_list
from epubsearch.search.pipeline import BoundedPipeline, run_blocking, shutdown_executor
from epubsearch.search.walker import iter_archive_paths

logger = logging.getLogger(__name__)

ResultHandler = Callable[[SearchResult], Awaitable[None] | None]


def build_pattern(query: SearchQuery) -> str:
    """Turn a query into the pattern string handed to the cache.

    Raises:
        InvalidQueryError: The sub-query selected by ``is_regex`` is missing.
    """
    if query.is_regex:
        if query.regex is None:
            raise InvalidQueryError("regex configuration is required when is_regex is true")
        return query.regex.pattern

    if query.text is None:
        raise InvalidQueryError("text configuration is required when is_regex is false")
    pattern = re.escape(query.text.value)
    if query.text.ignore_case:
        pattern = "(?i)" + pattern
    return pattern


class FileSearch:
    """Search every archive below ``root``.

    Args:
        root: Directory (or single archive) to search.
        max_threads: Worker count (<= 0 = CPU count).
        extract_metadata: Parse OPF metadata for archives that match.
        pattern_cache: Compiled-pattern cache (process-wide cache if None).
        extractor: Per-archive content extractor.
        metadata_extractor: Per-archive metadata extractor.
    """

    def __init__(
        self,
        root: str,
        max_threads: int = 0,
        extract_metadata: bool = False,
        pattern_cache: PatternCache | None = None,
        extractor: ArchiveExtractor | None = None,
        metadata_extractor: MetadataExtractor | None = None,
    ) -> None:
        if max_threads <= 0:
            max_threads = os.cpu_count() or 1
        self._root = root
        self._max_threads = max_threads
        self._extract_metadata = extract_metadata
        self._pattern_cache = pattern_cache or default_pattern_cache()
        self._extractor = extractor or ArchiveExtractor()
        self._metadata_extractor = metadata_extractor or MetadataExtractor(max_threads)

    @property
    def root(self) -> str:
        return self._root

    @property
    def max_threads(self) -> int:
        return self._max_threads

    async def search(
        self,
        request: SearchRequest,
        handler: ResultHandler,
        token: CancelToken | None = None,
    ) -> None:
        """Run one search, delivering results to ``handler`` as they are found.

        Raises:
            InvalidQueryError: The query is missing its sub-query.
            InvalidPatternError: The pattern does not compile.
            ArchiveIOError: The directory walk failed.
            HandlerError: The handler raised; wraps the original exception.
            SearchCancelledError: The token was cancelled or its deadline
                passed while the search was running.
        """
        pattern = build_pattern(request.query)
        compiled = self._pattern_cache.get(pattern)

        token = token or CancelToken()
        if token.done():
            logger.debug("Search of %s cancelled before start", self._root)
            return

        search_id = uuid.uuid4().hex[:8]
        set_search_context(search_id)
        logger.info(
            "Starting search of %s (pattern=%r, context=%d, workers=%d)",
            self._root, pattern, request.context, self._max_threads,
        )

        filters = request.filters
        allow_list = normalize_allow_list(filters.files_in) if filters else frozenset()
        run_token = token.child()
        executor = ThreadPoolExecutor(
            max_workers=self._max_threads, thread_name_prefix="epubsearch",
        )
        stats = {"delivered": 0, "skipped": 0}

        async def discover() -> AsyncIterator[str]:
            async for path in iter_archive_paths(self._root):
                if is_allowed(path, allow_list):
                    yield path

        async def process(path: str) -> None:
            matches = await self._find_matches(executor, path, compiled, request.context, run_token)
            if not matches:
                if matches is None:
                    stats["skipped"] += 1
                return

            metadata: Metadata | None = None
            if self._extract_metadata:
                metadata = await self._read_metadata(executor, path, run_token)
                if metadata is None:
                    stats["skipped"] += 1
                    return
                if filters is not None and not matches_metadata_filters(metadata, filters):
                    logger.debug("Result for %s rejected by metadata filters", path)
                    return

            result = SearchResult(path=path, metadata=metadata, matches=matches)
            try:
                outcome = handler(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                raise HandlerError(path, exc) from exc
            stats["delivered"] += 1

        pipeline: BoundedPipeline[str] = BoundedPipeline(run_token, self._max_threads)
        try:
            await pipeline.run(discover(), process)
        finally:
            run_token.cancel()
            await shutdown_executor(executor)
            logger.info(
                "Finished search of %s (results=%d, skipped=%d)",
                self._root, stats["delivered"], stats["skipped"],
            )

        if pipeline.interrupted:
            token.raise_if_cancelled()

    async def _find_matches(
        self,
        executor: ThreadPoolExecutor,
        path: str,
        pattern: re.Pattern[str],
        context_lines: int,
        token: CancelToken,
    ) -> list[Match] | None:
        """Matches for one archive, or None when the archive had to be skipped."""
        token.raise_if_cancelled()
        try:
            return await run_blocking(
                executor, self._extractor.extract, path, pattern, context_lines, token,
            )
        except SearchCancelledError:
            raise
        except ArchiveError as exc:
            logger.warning("Error searching in epub %s: %s", path, exc)
        except Exception:
            logger.exception("Unexpected error searching in epub %s", path)
        return None

    async def _read_metadata(
        self,
        executor: ThreadPoolExecutor,
        path: str,
        token: CancelToken,
    ) -> Metadata | None:
        try:
            return await run_blocking(
                executor, self._metadata_extractor.extract_from_file, path, token,
            )
        except SearchCancelledError:
            raise
        except ArchiveError as exc:
            logger.warning("Error extracting metadata from %s: %s", path, exc)
        except Exception:
            logger.exception("Unexpected error extracting metadata from %s", path)
        return None
