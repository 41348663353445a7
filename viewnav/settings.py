from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NavigatorSettings(BaseSettings):
    """Configuration for the view navigation manager.

    Values are loaded from environment variables and `.env`.

    Notes:
    - CACHE_LIMIT bounds live view instances; the active view is never evicted,
      so the cache may briefly hold one entry more than the limit.
    - MAX_HISTORY_LENGTH bounds the back stack; oldest entries drop first.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Transitions
    VIEWNAV_ENABLE_TRANSITIONS: bool = Field(default=True)
    VIEWNAV_TRANSITION_DURATION_MS: int = Field(default=300, ge=0)

    # History
    VIEWNAV_ENABLE_HISTORY: bool = Field(default=True)
    VIEWNAV_MAX_HISTORY_LENGTH: int = Field(default=10, ge=1)

    # View cache
    VIEWNAV_ENABLE_VIEW_CACHING: bool = Field(default=True)
    VIEWNAV_CACHE_LIMIT: int = Field(default=5, ge=1)
    VIEWNAV_PRELOAD_VIEWS: bool = Field(default=False)

    # Start view + window title suffix
    VIEWNAV_DEFAULT_VIEW: str = Field(default="home")
    VIEWNAV_APP_TITLE: str = Field(default="viewnav")

    # Logging (diagnostic; rotated daily)
    VIEWNAV_LOG_DIR: Path = Field(default=Path("_logs"))
    VIEWNAV_LOG_LEVEL: str = Field(default="INFO")
    # Timed rotation retention count (days). Old log files are auto-deleted.
    VIEWNAV_LOG_BACKUP_COUNT: int = Field(default=14, ge=0)


def load_settings(**overrides: object) -> NavigatorSettings:
    """Load settings from the environment, applying keyword overrides on top.

    Overrides go through the same field validation as environment values.
    """
    return NavigatorSettings(**overrides)
