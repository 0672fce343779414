"""Settings for rowspine.

All fields can be set through ``ROWSPINE_*`` environment variables (e.g.
``ROWSPINE_DATABASE_URL=sqlite:///data/app.db``) or a ``.env`` file.

Examples:
    >>> from rowspine.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.database_url
    'memory'

Tags:
    settings, configuration, pydantic, environment, rowspine
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RowspineSettings(BaseSettings):
    """rowspine configuration.

    Fields
    ──────
    database_url : ``memory``, ``sqlite:///path`` or a bare SQLite file path
    dialect      : Dialect override; derived from the data source when unset
    log_level    : Structlog log level
    log_format   : ``console`` or ``json``
    """

    model_config = SettingsConfigDict(
        env_prefix="ROWSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="memory")
    dialect: str | None = Field(default=None, description="ansi | sqlite")

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"


_settings_cache: dict[str, RowspineSettings] = {}


def get_settings(*, _force_reload: bool = False) -> RowspineSettings:
    """Load, validate, and cache a :class:`RowspineSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = RowspineSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
