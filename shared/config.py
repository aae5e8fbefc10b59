"""
Shared configuration management for the Cart Offer service.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="OFFERS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Segment service
    segment_service_url: str = Field(default="http://localhost:1080/api/v1")
    segment_timeout_seconds: float = Field(default=2.0, gt=0)
    segment_breaker_failure_threshold: int = Field(default=5, ge=1)
    segment_breaker_recovery_seconds: float = Field(default=30.0, ge=0)

    # Rate limiting (token bucket per client on apply-offer)
    rate_limit_capacity: int = Field(default=10, ge=1)
    rate_limit_refill_per_second: float = Field(default=5.0, gt=0)

    # Access control
    default_role: Optional[str] = Field(default=None)
    allow_segment_simulation: bool = Field(default=True)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "offers"
    port: int = 9001
    host: str = "0.0.0.0"


def get_config(service_name: str = "offers", port: int = 9001, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
