"""Configuration models for okta-iac."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, SecretStr, field_validator

# Default ceiling for create/read/update, as in the provider's resource timeouts
DEFAULT_OPERATION_TIMEOUT_SECONDS = 3600.0


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output formats."""
    JSON = "json"
    TEXT = "text"


class OktaConfig(BaseModel):
    """Okta API configuration."""

    domain: str = Field(
        ...,
        description="Okta domain (e.g., 'yourorg.okta.com')",
        min_length=1
    )
    api_token: SecretStr = Field(
        ...,
        description="Okta API token with appropriate permissions"
    )
    rate_limit_per_minute: int = Field(
        600,
        description="Rate limit for Okta API calls per minute",
        ge=1
    )
    timeout_seconds: int = Field(
        30,
        description="Timeout for a single Okta API call in seconds",
        ge=1
    )
    max_retries: int = Field(
        3,
        description="Maximum number of retry attempts",
        ge=0
    )
    retry_delay_seconds: float = Field(
        1.0,
        description="Initial delay between retries in seconds",
        ge=0.1
    )

    @field_validator("domain")
    @classmethod
    def validate_domain(cls, v: str) -> str:
        """Validate Okta domain format."""
        v = v.replace("https://", "").replace("http://", "")
        v = v.rstrip("/")

        if not v.endswith(".okta.com") and not v.endswith(".oktapreview.com"):
            raise ValueError("Domain must be a valid Okta domain (.okta.com or .oktapreview.com)")

        return v


class TimeoutsConfig(BaseModel):
    """Per-operation ceilings applied around a whole reconciliation."""

    create_seconds: float = Field(DEFAULT_OPERATION_TIMEOUT_SECONDS, gt=0)
    read_seconds: float = Field(DEFAULT_OPERATION_TIMEOUT_SECONDS, gt=0)
    update_seconds: float = Field(DEFAULT_OPERATION_TIMEOUT_SECONDS, gt=0)
    delete_seconds: float = Field(DEFAULT_OPERATION_TIMEOUT_SECONDS, gt=0)


class LoggingConfig(BaseModel):
    """Structured logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.JSON, description="Log format (json or text)")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @field_validator("format", mode="before")
    @classmethod
    def normalize_format(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v


class ProviderConfig(BaseModel):
    """Main provider configuration."""

    okta: OktaConfig = Field(
        ...,
        description="Okta API configuration"
    )
    timeouts: TimeoutsConfig = Field(
        default_factory=TimeoutsConfig,
        description="Operation timeouts"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration"
    )
    features: List[str] = Field(
        default_factory=list,
        description="Extra org features to assume on top of the discovered ones"
    )
