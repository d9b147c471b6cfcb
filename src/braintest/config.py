"""
Configuration management using Pydantic BaseSettings.

Values come from (highest priority first) constructor arguments, environment
variables prefixed with ``BRAINTEST_``, and a local ``.env`` file. The stock-photo
API key is also accepted as plain ``PEXELS_API_KEY``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="BRAINTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # External image sources
    pexels_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("BRAINTEST_PEXELS_API_KEY", "PEXELS_API_KEY", "pexels_api_key"),
    )
    pexels_base_url: str = "https://api.pexels.com/v1"
    wikipedia_api_url: str = "https://en.wikipedia.org/w/api.php"
    placeholder_base_url: str = "https://robohash.org"
    user_agent: str = "braintest/0.3 (animal naming self-test)"
    http_timeout: float = Field(default=10.0, gt=0)

    # Image cache expiry windows
    stock_cache_hours: float = Field(default=24.0, gt=0)
    encyclopedia_cache_hours: float = Field(default=48.0, gt=0)

    # Local persistence
    db_path: Path = Path(".braintest") / "braintest.db"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value
