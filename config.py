"""
Configuration settings for the quizstate engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="QUIZSTATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Local Persistence
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".quizstate",
        description="Directory holding the local state database",
    )
    local_db_name: str = Field(
        default="state.db",
        description="File name of the local key/value database",
    )

    # ========================================
    # Remote Document Store
    # ========================================
    remote_url: str | None = Field(
        default=None,
        description="Base URL of the remote document service (unset = guest only)",
    )
    remote_api_key: str | None = Field(
        default=None,
        description="API key sent as X-API-Key to the document service",
    )
    remote_timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout for document reads and writes",
    )
    remote_poll_interval_seconds: float = Field(
        default=5.0,
        description="How often a remote subscription polls for changes",
    )

    # ========================================
    # Content
    # ========================================
    master_codes_path: Path = Field(
        default=Path("data/taxonomy/master_codes.json"),
        description="Flat code -> {subject, path} mapping",
    )
    taxonomy_dir: Path = Field(
        default=Path("data/taxonomy"),
        description="Directory of per-subject taxonomy files",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum level for the stderr sink",
    )
    log_file: Path | None = Field(
        default=None,
        description="Optional rotating log file",
    )

    # ========================================
    # Review Scheduling
    # ========================================
    quick_review_count: int = Field(
        default=5,
        description="Default size of the quick review queue",
    )
    graduation_streak: int = Field(
        default=3,
        description="Consecutive correct reviews before a note graduates",
    )
    review_recency_per_day: float = Field(default=10.0)
    review_recency_cap: float = Field(default=100.0)
    review_mastery_cap: int = Field(default=3)
    review_mastery_weight: float = Field(default=20.0)
    review_frequency_per_wrong: float = Field(default=5.0)
    review_frequency_cap: float = Field(default=50.0)

    # ========================================
    # Missions
    # ========================================
    daily_target: int = Field(
        default=30,
        description="Questions per day for the daily mission",
    )

    @property
    def local_db_path(self) -> Path:
        return self.data_dir / self.local_db_name

    def has_remote_configured(self) -> bool:
        """Check if a remote document service is configured."""
        return bool(self.remote_url)

    def get_review_weights(self) -> dict[str, float]:
        """Get review priority weights as a dictionary."""
        return {
            "recency_per_day": self.review_recency_per_day,
            "recency_cap": self.review_recency_cap,
            "mastery_cap": self.review_mastery_cap,
            "mastery_weight": self.review_mastery_weight,
            "frequency_per_wrong": self.review_frequency_per_wrong,
            "frequency_cap": self.review_frequency_cap,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
