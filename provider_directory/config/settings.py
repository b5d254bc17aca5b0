"""Application settings loaded from environment variables via pydantic-settings.

Values come from two sources, highest priority first:

  1. Environment variables, e.g. ``SOURCE_URL=https://...``
  2. A ``.env`` file in the working directory

Field ``cache_timeout_ms`` maps to env var ``CACHE_TIMEOUT_MS`` and so on.
Defaults apply when neither source sets a field.

Durations keep the millisecond units of the directory's published config
keys (``cacheTimeoutMs``, ``retryDelayMs``, ``autoRefreshIntervalMs``);
the ``*_seconds`` properties convert for asyncio and the cache tiers.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Provider directory settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Remote source ===
    # Raw CSV URL; github.com "blob" URLs are rewritten to raw URLs.
    source_url: str = ""
    request_timeout_s: float = Field(default=15.0, gt=0)

    # === Caching / retry ===
    cache_timeout_ms: int = Field(default=5 * 60 * 1000, ge=0)
    retry_attempts: int = Field(default=3, ge=1)
    retry_delay_ms: int = Field(default=1000, ge=0)
    auto_refresh_interval_ms: int = Field(default=10 * 60 * 1000, gt=0)

    # CSV or JSON file holding the list served when every source fails.
    fallback_data_path: str = ""

    # === Session cache tier ===
    session_db_path: str = "data/session_cache.db"
    # Empty = a fresh session per process, like a new browser tab.
    session_id: str = ""
    session_max_age_hours: int = 24

    # === Admin ===
    # Shared static token gating the privileged session (pauses auto-refresh).
    admin_token: str = ""

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    @property
    def cache_timeout_seconds(self) -> float:
        return self.cache_timeout_ms / 1000.0

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000.0

    @property
    def auto_refresh_interval_seconds(self) -> float:
        return self.auto_refresh_interval_ms / 1000.0
