"""Engine configuration loaded from environment variables."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Config:
    """Engine configuration."""

    database_url: str
    log_level: str

    # TMDB settings
    tmdb_bearer_token: str | None
    tmdb_language: str
    tmdb_region: str
    tmdb_monetization_types: str

    # Preference learning
    decay_half_life_days: float
    min_score_to_keep: float
    top_genres_count: int

    # Sampling
    sample_page_count: int
    refill_threshold: int

    # Storage
    storage_write_retries: int

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        database_url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./reeldeck.db")
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        tmdb_bearer_token = os.getenv("TMDB_BEARER_TOKEN") or None
        tmdb_language = os.getenv("TMDB_LANGUAGE", "es-ES")
        tmdb_region = os.getenv("TMDB_REGION", "ES")
        tmdb_monetization_types = os.getenv("TMDB_MONETIZATION_TYPES", "flatrate|ads|free")

        decay_half_life_days = _float_env("DECAY_HALF_LIFE_DAYS", 90.0)
        if decay_half_life_days <= 0:
            raise ConfigurationError(
                f"DECAY_HALF_LIFE_DAYS must be positive, got: {decay_half_life_days}"
            )

        min_score_to_keep = _float_env("MIN_SCORE_TO_KEEP", 0.1)
        if min_score_to_keep < 0:
            raise ConfigurationError("MIN_SCORE_TO_KEEP must not be negative")

        top_genres_count = _int_env("TOP_GENRES_COUNT", 3)

        sample_page_count = _int_env("SAMPLE_PAGE_COUNT", 3)
        if sample_page_count < 1:
            raise ConfigurationError("SAMPLE_PAGE_COUNT must be at least 1")

        refill_threshold = _int_env("REFILL_THRESHOLD", 10)
        storage_write_retries = max(1, _int_env("STORAGE_WRITE_RETRIES", 3))

        return cls(
            database_url=database_url,
            log_level=log_level,
            tmdb_bearer_token=tmdb_bearer_token,
            tmdb_language=tmdb_language,
            tmdb_region=tmdb_region,
            tmdb_monetization_types=tmdb_monetization_types,
            decay_half_life_days=decay_half_life_days,
            min_score_to_keep=min_score_to_keep,
            top_genres_count=top_genres_count,
            sample_page_count=sample_page_count,
            refill_threshold=refill_threshold,
            storage_write_retries=storage_write_retries,
        )


config = Config.from_env()
