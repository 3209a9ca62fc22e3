"""Configuration management for StreamGuard."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from streamguard.core.models import CloudConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    # Local cache
    cache_path: str = "~/.streamguard/cache.db"

    # Remote document store (JSONBin)
    jsonbin_api_base: str = "https://api.jsonbin.io/v3/b"

    # Default remote connection, overridden by a locally stored config
    cloud_enabled: bool = False
    cloud_bin_id: str = ""
    cloud_api_key: str = ""

    # Last.fm
    lastfm_api_base: str = "https://ws.audioscrobbler.com/2.0/"
    history_limit: int = 50

    # HTTP
    http_timeout: float = 30.0

    # Document defaults
    default_spotify_playlist_id: str = "37i9dQZF1DXcBWIGoYBM5M"

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def resolved_cache_path(self) -> Path:
        """Get the cache path with the user directory expanded."""
        return Path(self.cache_path).expanduser()

    @property
    def default_cloud_config(self) -> CloudConfig | None:
        """Get the compiled-in remote connection, if one was provided."""
        if not (self.cloud_enabled or self.cloud_bin_id or self.cloud_api_key):
            return None
        return CloudConfig(
            enabled=self.cloud_enabled,
            bin_id=self.cloud_bin_id,
            api_key=self.cloud_api_key,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
