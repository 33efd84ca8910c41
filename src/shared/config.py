"""
Centralized configuration for FlowWatch.

Uses pydantic-settings for environment variable management.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Correlation Engine Configuration
    # ==========================================================================

    # Maximum number of IP-pair entries returned in the correlation matrix
    matrix_limit: int = 20

    # Minimum risk level that raises an alarm
    alarm_min_risk_level: Literal["low", "medium", "high", "critical"] = "high"

    # ==========================================================================
    # Synthetic Feed Configuration
    # ==========================================================================

    # Seed for the synthetic anomaly generator (None = nondeterministic)
    generator_seed: int | None = None
    generator_batch_size: int = 50

    # Logging
    log_level: str = "INFO"

    # Output Configuration
    output_dir: str = "output"
    save_report: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
