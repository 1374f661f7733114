"""Settings for code generation and logging.

Values come from ``ROWMAP_*`` environment variables and an optional ``.env``
file; CLI options override them per invocation.

Examples:
    >>> import os
    >>> os.environ["ROWMAP_QUALIFY_COLUMNS"] = "true"
    >>> RowmapSettings().qualify_columns
    True
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RowmapSettings(BaseSettings):
    """Generator and logging configuration.

    Fields
    ──────
    tag              : dataclass field-metadata key holding the mapping annotation
    qualify_columns  : emit ``table.column`` names from ``columns()``
    formatter        : post-render formatter (``python`` or ``ruff``)
    log_level        : structlog log level
    json_logs        : JSON log output; ``None`` picks JSON when not on a tty
    """

    model_config = SettingsConfigDict(
        env_prefix="ROWMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    tag: str = Field(default="db", min_length=1)
    qualify_columns: bool = False
    formatter: Literal["python", "ruff"] = "python"

    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return value


@lru_cache(maxsize=1)
def get_settings() -> RowmapSettings:
    """Return the process-wide settings, loaded once."""
    return RowmapSettings()


__all__ = ["RowmapSettings", "get_settings"]
