from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True)

    app_name: str = "PlayerPeaks"
    log_level: str = "INFO"
    redis_url: str | None = Field(default=None, validation_alias=AliasChoices("REDIS_URL", "KV_URL", "redis_url"))
    store_timeout_seconds: float = 2.0
    samples_key: str = "playerPeaks"
    last_sample_key: str = "lastSaveTime"
    sample_interval_seconds: int = 600
    roblox_api_base: str = "https://games.roblox.com"
    universe_id: str = "8779464785"
    source_timeout_seconds: float = 5.0
    rate_limit_window_seconds: int = 10
    rate_limit_max_requests: int = 10
    rate_limit_block_seconds: int = 3600


@lru_cache()
def get_settings() -> Settings:
    return Settings()
