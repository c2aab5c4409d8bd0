"""Application settings loaded from environment variables and config files."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, PositiveFloat, PositiveInt, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from tunestream.config import CONFIG_ROOT

MAX_API_KEYS = 4


class TrendingConfig(BaseModel):
    """Chart parameters used for the trending music request."""

    category_id: str = "10"
    max_results: PositiveInt = Field(default=20, le=50)
    region_code: Optional[str] = Field(default=None, min_length=2, max_length=2)

    model_config = ConfigDict(extra="forbid")


class ProviderConfig(BaseModel):
    """Request parameters for the YouTube Data API."""

    base_url: HttpUrl = Field(default="https://www.googleapis.com/youtube/v3", validate_default=True)
    search_max_results: PositiveInt = Field(default=20, le=50)
    playlist_page_size: PositiveInt = Field(default=50, le=50)
    trending: TrendingConfig = Field(default_factory=TrendingConfig)

    model_config = ConfigDict(extra="forbid")

    def endpoint(self, name: str) -> str:
        """Return the absolute URL for an API resource such as ``search`` or ``videos``."""

        return f"{str(self.base_url).rstrip('/')}/{name}"


def _load_provider_config(config_path: Path) -> ProviderConfig:
    if not config_path.exists():
        return ProviderConfig()

    raw_data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    return ProviderConfig(**raw_data)


class Settings(BaseSettings):
    """Primary application settings for the Tunestream provider core."""

    youtube_api_key_1: SecretStr = Field(alias="YOUTUBE_API_KEY_1")
    youtube_api_key_2: Optional[SecretStr] = Field(default=None, alias="YOUTUBE_API_KEY_2")
    youtube_api_key_3: Optional[SecretStr] = Field(default=None, alias="YOUTUBE_API_KEY_3")
    youtube_api_key_4: Optional[SecretStr] = Field(default=None, alias="YOUTUBE_API_KEY_4")

    cache_duration_minutes: PositiveInt = Field(default=24 * 60, alias="CACHE_DURATION_MINUTES")
    cache_sweep_interval_seconds: PositiveFloat = Field(default=300.0, alias="CACHE_SWEEP_INTERVAL_SECONDS")
    request_timeout_seconds: PositiveFloat = Field(default=12.0, alias="REQUEST_TIMEOUT_SECONDS")
    recent_searches_path: Path = Field(
        default=Path("data") / "recent_searches.json", alias="RECENT_SEARCHES_PATH"
    )

    provider: ProviderConfig = Field(default_factory=lambda: _load_provider_config(CONFIG_ROOT / "provider.yaml"))

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    def api_keys(self) -> List[str]:
        """Return the configured API keys in slot order, skipping blank slots."""

        slots = (self.youtube_api_key_1, self.youtube_api_key_2, self.youtube_api_key_3, self.youtube_api_key_4)
        keys: List[str] = []
        for secret in slots[:MAX_API_KEYS]:
            if secret is None:
                continue
            value = secret.get_secret_value().strip()
            if value:
                keys.append(value)
        return keys


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached instance of the application settings."""

    return Settings()


__all__ = ["MAX_API_KEYS", "ProviderConfig", "Settings", "TrendingConfig", "get_settings"]
