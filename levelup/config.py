"""
Configuration settings for the LevelUp engine.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are prefixed with LEVELUP_ (e.g. LEVELUP_AI_ENHANCEMENTS_ENABLED=false).
"""
from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path
from typing import Literal

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class EngineSettings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LEVELUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Enhancement strategy
    # ========================================
    ai_enhancements_enabled: bool = Field(
        default=True,
        description="Use the heuristic enhancement strategy (False selects the rule-based one)",
    )
    enhancement_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Upper bound on a single enhancement call before falling back",
    )

    # ========================================
    # Performance tracking
    # ========================================
    performance_window: int = Field(
        default=10,
        ge=1,
        description="Number of answers kept in a session's rolling history",
    )
    recent_window: int = Field(
        default=5,
        ge=1,
        description="Number of most recent answers used for accuracy estimates",
    )

    # ========================================
    # Streak Challenge
    # ========================================
    streak_usage_ratio: float = Field(
        default=0.7,
        gt=0,
        le=1,
        description="Share of the catalog used before old item ids are evicted",
    )
    streak_eviction_count: int = Field(
        default=10,
        ge=1,
        description="Oldest used item ids dropped per eviction",
    )

    # ========================================
    # Precision Mode
    # ========================================
    precision_pool_size: int = Field(
        default=25,
        ge=1,
        description="Confidence-ranked items eligible for a precision session",
    )
    precision_default_target: int = Field(
        default=15,
        ge=1,
        description="Default number of items in a precision session",
    )

    # ========================================
    # Deep Dive
    # ========================================
    deep_dive_default_target: int = Field(
        default=15,
        ge=1,
        description="Default number of items in a deep dive session",
    )
    deep_dive_default_depth: int = Field(
        default=3,
        ge=1,
        le=5,
        description="Default starting comprehension depth",
    )
    deep_dive_top_fraction: float = Field(
        default=0.2,
        gt=0,
        le=1,
        description="Share of top-scored candidates sampled for the next item",
    )

    # ========================================
    # Persistence & logging
    # ========================================
    profile_dir: Path = Field(
        default=Path(".levelup/profiles"),
        description="Directory used by the JSON profile store",
    )
    log_level: LogLevel = Field(
        default="WARNING",
        description="Level used by configure_logging()",
    )


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()


def configure_logging(level: str | None = None) -> None:
    """
    Replace loguru's default sink with a single stderr sink.

    Meant for applications embedding the engine; the library itself
    never touches sinks on import.

    Args:
        level: Log level name (defaults to settings.log_level)
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or get_settings().log_level).upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
