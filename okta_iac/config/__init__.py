"""Configuration package for okta-iac."""

from .loader import (
    ConfigLoader,
    EnvironmentVariableError,
    SecurityError,
    find_config_file,
    load_config_from_dict,
    load_config_from_path,
)
from .models import (
    LogFormat,
    LoggingConfig,
    LogLevel,
    OktaConfig,
    ProviderConfig,
    TimeoutsConfig,
)

__all__ = [
    "ConfigLoader",
    "EnvironmentVariableError",
    "SecurityError",
    "find_config_file",
    "load_config_from_dict",
    "load_config_from_path",
    "LogFormat",
    "LoggingConfig",
    "LogLevel",
    "OktaConfig",
    "ProviderConfig",
    "TimeoutsConfig",
]
