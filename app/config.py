"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=get_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database (Supabase Postgres in production)
    database_url: str = "sqlite:///./dev.db"

    # App settings
    app_name: str = "Building Finance API"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Scenario defaults
    default_discount_rate: float = 0.08
    default_projection_years: int = 5
    default_escalation: str = "compound"
    rehab_horizon_years: int = 10

    # IRR search
    irr_tolerance: float = 1e-6
    irr_max_iterations: int = 1000
    irr_lower_bound: float = -0.99
    irr_upper_bound: float = 10.0

    # Sensitivity grid
    sensitivity_rate_offsets: List[float] = [-0.02, -0.01, 0.0, 0.01, 0.02]
    sensitivity_cash_flow_multipliers: List[float] = [0.9, 1.0, 1.1]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
