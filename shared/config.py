"""
Shared configuration management for the status gateway.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias=AliasChoices("env", "STATUS_ENV"))
    log_level: str = Field(default="info", validation_alias=AliasChoices("log_level", "STATUS_LOG_LEVEL"))

    # Upstream directory (credentials are checked per operation, not at load)
    sonar_endpoint: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("sonar_endpoint", "SONAR_ENDPOINT")
    )
    sonar_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("sonar_token", "SONAR_TOKEN")
    )
    sonar_company_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("sonar_company_id", "SONAR_COMPANY_ID")
    )
    sonar_account_status_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("sonar_account_status_id", "SONAR_ACCOUNT_STATUS_ID"),
    )
    upstream_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices("upstream_timeout_seconds", "STATUS_UPSTREAM_TIMEOUT_SECONDS"),
    )

    # Caching and fan-out
    cache_ttl_ms: int = Field(default=60_000, validation_alias=AliasChoices("cache_ttl_ms", "CACHE_TTL_MS"))
    fetch_concurrency: int = Field(
        default=5, validation_alias=AliasChoices("fetch_concurrency", "STATUS_FETCH_CONCURRENCY")
    )
    single_flight: bool = Field(
        default=False, validation_alias=AliasChoices("single_flight", "STATUS_SINGLE_FLIGHT")
    )

    # Suppression list persistence
    suppressions_file: Optional[str] = Field(
        default="data/suppressions.json",
        validation_alias=AliasChoices("suppressions_file", "STATUS_SUPPRESSIONS_FILE"),
    )


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int = Field(default=3000, validation_alias=AliasChoices("port", "PORT"))
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: Optional[int] = None, **kwargs):
        if port is not None:
            kwargs["port"] = port
        super().__init__(service_name=service_name, **kwargs)


def get_config(service_name: str, port: Optional[int] = None, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
