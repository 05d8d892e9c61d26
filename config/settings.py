"""
Global settings and configuration management for the analytics engine.

This module provides centralized configuration using Pydantic for validation
and environment variable support.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
CONFIG_DIR = PROJECT_ROOT / "config"
LOGS_DIR = PROJECT_ROOT / "logs"


class AnalyticsSettings(BaseSettings):
    """Numeric conventions shared by every analytics component."""

    model_config = SettingsConfigDict(
        env_prefix="PORTFOLIO_ANALYTICS_",
        env_file=".env",
        extra="ignore"
    )

    # Annualization
    risk_free_rate: float = 0.0  # Annual, fractional
    trading_days_per_year: int = 252
    periods_per_year: int | None = None  # None: infer from sampling frequency

    # Risk
    confidence_levels: list[float] = Field(default=[0.95, 0.99])
    var_method: Literal["historical", "parametric"] = "historical"
    high_correlation_threshold: float = 0.7
    low_correlation_threshold: float = 0.3

    # Benchmarks
    min_overlap_points: int = 2

    # Attribution
    attribution_tolerance: float = 1e-9  # Relative
    weight_sum_tolerance: float = 1e-6
    normalize_weights: bool = False

    # Batch execution
    max_workers: int | None = None

    @field_validator("confidence_levels")
    @classmethod
    def check_confidence_levels(cls, v: list[float]) -> list[float]:
        """Confidence levels must lie strictly between 0 and 1."""
        for level in v:
            if not 0.0 < level < 1.0:
                raise ValueError(f"Confidence level must be in (0, 1), got {level}")
        return sorted(set(v))

    @field_validator("min_overlap_points")
    @classmethod
    def check_min_overlap(cls, v: int) -> int:
        """At least two points are needed to form a return."""
        if v < 2:
            raise ValueError(f"min_overlap_points must be >= 2, got {v}")
        return v

    @field_validator("trading_days_per_year")
    @classmethod
    def check_trading_days(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"trading_days_per_year must be positive, got {v}")
        return v


# Markup tags are stripped for the file sink
LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="PORTFOLIO_ANALYTICS_LOG_",
        env_file=".env",
        extra="ignore"
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = LOG_FORMAT
    log_file: Path | None = None
    rotation: str = "10 MB"
    retention: str = "30 days"
    serialize: bool = False  # JSON logging
    console: bool = True
    slow_call_ms: float = 1000.0  # Timed calls above this log a warning


class Settings(BaseSettings):
    """Main settings container combining all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    # Sub-settings
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Environment
    environment: Literal["development", "testing", "production"] = "development"
    debug: bool = False


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment and config files."""
    global settings
    settings = Settings()
    return settings
