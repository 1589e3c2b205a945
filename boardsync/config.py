"""Settings: environment-driven configuration via pydantic-settings.

Invariants:
    - Secrets (the anon key) come from the environment or the saved local config,
      never from source
    - get_settings() is cached (lru_cache): single instance per process
    - Empty supabase_url / supabase_anon_key means "use the saved config, if any"

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - BOARDSYNC_ prefix keeps the process environment unambiguous
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Process settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="BOARDSYNC_", case_sensitive=False,
        extra="ignore",
    )

    # Remote backend (optional: local-only mode when unset)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    request_timeout_seconds: float = 10.0

    # Local key-value store (saved config + persisted auth session)
    config_store_url: str = "sqlite+aiosqlite:///boardsync.db"

    @field_validator("config_store_url", mode="before")
    @classmethod
    def convert_sqlite_url(cls, v: str) -> str:
        """Plain sqlite:// URLs need the async driver."""
        if isinstance(v, str) and v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
