"""
Configuration settings for the event simulator.

Uses Pydantic Settings to load environment variables for logging, timestamp
defaults, failure tolerance, and database connectivity of the generators.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Generation defaults
    default_timestamp_interval_ms: int = Field(
        1000, alias="SIM_DEFAULT_TIMESTAMP_INTERVAL_MS", gt=0
    )
    max_consecutive_failures: int = Field(5, alias="SIM_MAX_CONSECUTIVE_FAILURES", ge=1)

    # Database source
    fetch_batch_size: int = Field(1000, alias="SIM_FETCH_BATCH_SIZE", gt=0)
    db_connect_timeout_s: int = Field(10, alias="DB_CONNECT_TIMEOUT_S", gt=0)
    db_connect_attempts: int = Field(3, alias="DB_CONNECT_ATTEMPTS", ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
