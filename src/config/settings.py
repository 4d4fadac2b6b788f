# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for search defaults and logging setup. CLI flags
override individual fields through load_settings(**overrides).
"""

from __future__ import annotations

from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from epubsearch.logging.handlers import parse_size
from epubsearch.logging.logger import LEVEL_NAMES
from epubsearch.scanning.text_scanner import MAX_LINE_LENGTH
from epubsearch.scanning.tokenizer import DEFAULT_CHECK_INTERVAL


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Search ===
    search_root: str = ""
    max_threads: int = 0
    extract_metadata: bool = False

    # === Scanning ===
    pattern_cache_size: int = 128
    html_cancel_check_interval: int = DEFAULT_CHECK_INTERVAL
    max_line_length: int = MAX_LINE_LENGTH

    # === Logging ===
    log_level: str = "warn"
    log_format: Literal["json", "text"] = "text"
    log_file: str = ""
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("max_threads")
    @classmethod
    def validate_max_threads(cls, v: int) -> int:
        """0 selects the CPU count; negative counts are rejected."""
        if v < 0:
            raise ValueError("max_threads must be >= 0")
        return v

    @field_validator("pattern_cache_size", "html_cancel_check_interval", "max_line_length")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().lower()
        if level not in LEVEL_NAMES:
            raise ValueError(
                f"log_level must be one of {', '.join(sorted(LEVEL_NAMES))}, got {v!r}"
            )
        return level

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.log_file:
            try:
                parse_size(self.log_rotation)
            except ValueError:
                errors.append(
                    f"LOG_ROTATION {self.log_rotation!r} is not a valid size for LOG_FILE"
                )
            if self.log_retention < 0:
                errors.append("LOG_RETENTION must be >= 0 when LOG_FILE is set")

        if errors:
            raise ConfigurationError("; ".join(errors))
        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (CLI flags or tests).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
