"""
ControlPulse Application Configuration
Analytics defaults and service settings loaded from the environment
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .services.analytics.bayesian import INDUSTRY_PRIORS
from .services.analytics.constants import ENTROPY_VELOCITY_WINDOW, MOMENTUM_WINDOW

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _split_origins(value: str) -> List[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="CONTROLPULSE_", extra="ignore")

    # Application
    app_name: str = "ControlPulse"
    app_version: str = "1.0.0"
    debug: bool = False

    # Logging
    log_level: str = "INFO"

    # Analytics defaults
    entropy_velocity_window: int = Field(default=ENTROPY_VELOCITY_WINDOW, description="CEI history window")
    momentum_window: int = Field(default=MOMENTUM_WINDOW, description="Risk momentum window")
    default_industry: str = Field(default="default", description="Benchmark prior for Bayesian scoring")

    # Allowed hosts for CORS, comma-separated
    allowed_origins: str = Field(default="http://localhost:3000", description="Comma-separated CORS origins")

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("entropy_velocity_window", "momentum_window")
    @classmethod
    def window_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Analytics windows must be at least 1")
        return v

    @field_validator("default_industry")
    @classmethod
    def industry_must_have_prior(cls, v: str) -> str:
        industry = v.lower().strip()
        if industry not in INDUSTRY_PRIORS:
            raise ValueError(f"No benchmark prior for industry '{v}'")
        return industry

    @field_validator("allowed_origins")
    @classmethod
    def validate_origins(cls, v: str) -> str:
        for origin in _split_origins(v):
            if not origin.startswith(("https://", "http://localhost")):
                raise ValueError("All origins must use HTTPS (except localhost)")
        return v

    @property
    def cors_origins(self) -> List[str]:
        return _split_origins(self.allowed_origins)


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings"""
    return Settings()
