"""Runtime configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Attributes
    ----------
    app_name : str
        Human-readable application name.
    database_url : str
        SQLAlchemy database URL.
    secret_key_path : Path
        Local file containing the key used for PIN digests and merge tokens.
    merge_token_ttl_seconds : int
        How long a merge confirmation token stays valid.
    max_return_window_days : int
        Furthest allowed expected-return date, in days from checkout.
    bootstrap_enabled : bool
        Whether one-time unauthenticated bootstrap is allowed.
    log_level : str
        Minimum log level.
    log_json : bool
        Render log events as JSON instead of console text.
    """

    model_config = SettingsConfigDict(env_prefix="AVDESK_", extra="ignore")

    app_name: str = "AV Desk"
    database_url: str = "sqlite+aiosqlite:///./avdesk.db"
    secret_key_path: Path = Field(default=Path(".avdesk_secret.key"))
    merge_token_ttl_seconds: int = 900
    max_return_window_days: int = 365
    bootstrap_enabled: bool = True
    log_level: str = "INFO"
    log_json: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings.

    Returns
    -------
    Settings
        Cached settings instance.
    """
    return Settings()
