# src/api/models.py — v1
"""API-level models: the JSON envelope returned by a directory search."""

from __future__ import annotations

from pydantic import Field

from epubsearch.core.models import SearchResult, _WireModel


class SearchSummary(_WireModel):
    """Totals over all delivered results."""

    total_files: int = 0
    total_matches: int = 0


class SearchOutput(_WireModel):
    """Return value of facade.search_directory()."""

    results: list[SearchResult] = Field(default_factory=list)
    summary: SearchSummary = Field(default_factory=SearchSummary)

    @classmethod
    def from_results(cls, results: list[SearchResult]) -> SearchOutput:
        return cls(
            results=results,
            summary=SearchSummary(
                total_files=len(results),
                total_matches=sum(len(r.matches) for r in results),
            ),
        )
