"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    environment: str = _ENVIRONMENT

    energy_mismatch_ratio: float = 0.20
    macro_slack_ratio: float = 1.10
    high_calorie_threshold: float = 2500.0
    high_sodium_threshold: float = 3000.0
    high_fiber_threshold: float = 30.0
    high_protein_threshold: float = 150.0

    match_threshold: int = 2
    learning_max_retries: int = 3
    confidence_sample_scale: float = 5.0
    confidence_consistency_threshold: float = 5.0
    confidence_consistency_scale: float = 25.0
    confidence_consistency_floor: float = 0.3

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
