from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_EXCLUDED_TAG_IDS = [
    1,  # Sports
    64,  # Esports
    102467,  # Crypto 15 minutes
    102175,  # Crypto 1 hour
    102531,  # Crypto 4H
    84,  # Weather
    1013,  # Earnings
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    polymarket_api_url: str = Field(
        default="https://gamma-api.polymarket.com/events",
        description="Polymarket events endpoint; validated when the request URL is built",
    )
    polymarket_web_url: str = Field(
        default="https://polymarket.com",
        description="Root used for market and event deep links",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout applied to upstream HTTP requests",
        gt=0,
    )
    fetch_limit: int = Field(
        default=500,
        description="Number of events requested from the feed per scan",
        ge=1,
    )
    excluded_tag_ids: list[int] | str = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_TAG_IDS),
        description="Comma-separated list or array of tag ids excluded from the feed query",
    )
    cache_ttl_seconds: int = Field(
        default=60,
        description="Lifetime of a cached variant payload",
        ge=0,
    )
    bucket_capacity: int = Field(
        default=5,
        description="Maximum number of markets returned per category",
        ge=1,
    )
    opportunities_window_hours: float = Field(
        default=24,
        description="Default closing window for the price-band opportunities scan",
        gt=0,
    )
    flipped_window_hours: float = Field(
        default=168,
        description="Default closing window for the flipped markets scan",
        gt=0,
    )
    velocity_window_hours: float = Field(
        default=168,
        description="Default closing window for the velocity scan",
        gt=0,
    )
    opportunities_min_volume: float = Field(
        default=10_000,
        description="Minimum volume (USD) for price-band opportunities",
        ge=0,
    )
    movement_min_volume: float = Field(
        default=50_000,
        description="Minimum volume (USD) for the flipped and velocity scans",
        ge=0,
    )
    flip_threshold: float = Field(
        default=0.2,
        description="Minimum absolute one-day price change for a market to count as flipped",
        ge=0,
    )
    velocity_threshold: float = Field(
        default=0.1,
        description="Minimum absolute one-day price change for the velocity scan",
        ge=0,
    )

    @field_validator("excluded_tag_ids", mode="before")
    @classmethod
    def _parse_excluded_tag_ids(cls, value: Any) -> list[int]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            value = [token.strip() for token in value.split(",") if token.strip()]
        if isinstance(value, (list, tuple, set)):
            tag_ids: list[int] = []
            for item in value:
                try:
                    tag_ids.append(int(item))
                except (TypeError, ValueError) as exc:
                    raise ValueError("EXCLUDED_TAG_IDS entries must be integers") from exc
            return tag_ids
        raise ValueError(
            "EXCLUDED_TAG_IDS must be provided as a comma-separated string or list of integers"
        )

    @property
    def excluded_tags(self) -> tuple[int, ...]:
        return tuple(int(value) for value in self.excluded_tag_ids)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
