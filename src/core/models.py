# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
JSON field names are camelCase so serialized results keep the wire shape
``{path, metadata, matches: [{line, fileName}]}``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Base model with camelCase aliases for serialization."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === QUERY MODELS ===


class TextQuery(_WireModel):
    """Literal text query."""

    value: str
    ignore_case: bool = False


class RegexQuery(_WireModel):
    """Regular-expression query."""

    pattern: str


class SearchQuery(_WireModel):
    """Query configuration; ``is_regex`` decides which sub-query is required."""

    is_regex: bool = False
    text: TextQuery | None = None
    regex: RegexQuery | None = None


class SearchFilters(_WireModel):
    """Optional result filters. Empty strings disable a filter."""

    author_equals: str = ""
    series_equals: str = ""
    title_equals: str = ""
    files_in: list[str] = Field(default_factory=list)


class SearchRequest(_WireModel):
    """A single search invocation."""

    query: SearchQuery
    filters: SearchFilters | None = None
    context: int = Field(default=0, ge=0)


# === RESULT MODELS ===


class Match(_WireModel):
    """A matching line (with optional context) and the archive entry it came from."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    line: str
    file_name: str


class Metadata(_WireModel):
    """Bibliographic metadata parsed from an archive's package manifest."""

    title: str = ""
    authors: list[str] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    series: str = ""
    series_position: float = 0.0
    year_released: int = 0
    identifiers: dict[str, str] = Field(default_factory=dict)


class SearchResult(_WireModel):
    """All matches found in one archive. Never produced for zero matches."""

    path: str
    metadata: Metadata | None = None
    matches: list[Match] = Field(default_factory=list)
