"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file)."""

    # --- App ---
    app_name: str = "Wireless Tag Sync"
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Tag manager ---
    wirelesstag_addr: str = "https://wirelesstag.net"
    wirelesstag_token: str = ""  # API bearer token from the tag manager account
    wirelesstag_user_agent: str = "WirelessTagClient"
    wirelesstag_timeout_seconds: float | None = 30.0
    wirelesstag_insecure_skip_verify: bool = False
    wirelesstag_timezone: str | None = None  # overrides sync_config.yaml when set

    # --- Sync ---
    sync_enabled: bool = True  # run the background sync loop on startup

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
