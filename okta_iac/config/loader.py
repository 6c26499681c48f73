"""Configuration loader with YAML parsing and environment variable substitution."""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from okta_iac.clients.exceptions import ConfigurationError
from okta_iac.config.models import ProviderConfig

logger = structlog.get_logger(__name__)


class SecurityError(ConfigurationError):
    """Raised when an environment reference fails security validation."""


class EnvironmentVariableError(ConfigurationError):
    """Raised when environment variable substitution fails."""


# Only these variables may be referenced from a configuration file
ALLOWED_ENV_VARS: Set[str] = {
    # Credentials
    "OKTA_API_TOKEN",

    # Organization
    "OKTA_DOMAIN",
    "OKTA_ORG_NAME",

    # Client tuning
    "OKTA_RATE_LIMIT_PER_MINUTE",
    "OKTA_TIMEOUT_SECONDS",
    "OKTA_MAX_RETRIES",

    # Logging
    "LOG_LEVEL",
    "LOG_FORMAT",

    # Operation timeouts
    "OKTA_IAC_CREATE_TIMEOUT",
    "OKTA_IAC_READ_TIMEOUT",
    "OKTA_IAC_UPDATE_TIMEOUT",
    "OKTA_IAC_DELETE_TIMEOUT",
}

ENV_VAR_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

CONFIG_FILENAMES = (
    "okta-iac.yaml",
    "okta-iac.yml",
    "config.yaml",
    "config.yml",
)


def sanitize_log_input(value: Any, max_length: int = 200) -> str:
    """Make a value safe to embed in an error or log message."""
    text = re.sub(r"[\x00-\x1F\x7F]", "", str(value))
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return text


def _validate_env_var_name(var_name: str) -> None:
    """Validate that an environment variable may be referenced.

    Raises:
        SecurityError: If the name is malformed or not in the allowlist
    """
    if not ENV_VAR_NAME_PATTERN.match(var_name) or len(var_name) > 255:
        raise SecurityError(
            f"Invalid environment variable name format: '{sanitize_log_input(var_name)}'. "
            "Environment variable names must contain only letters, digits, and underscores, "
            "and cannot start with a digit."
        )

    if var_name not in ALLOWED_ENV_VARS:
        raise SecurityError(
            f"Unauthorized environment variable '{sanitize_log_input(var_name)}' is not in allowlist. "
            f"Allowed variables: {sorted(ALLOWED_ENV_VARS)}"
        )


def _sanitize_env_value(value: str) -> str:
    """Reject values that could alter the YAML document structure.

    Raises:
        SecurityError: If the value contains special YAML characters
    """
    sanitized = value.strip()

    dangerous_chars = ["${", "#{", "&", "*", "!", "|", ">", "'", '"', "`", "\n"]
    for char in dangerous_chars:
        if char in sanitized:
            raise SecurityError(
                f"Environment variable contains potentially dangerous character {char!r}. "
                "Values with special YAML characters are not allowed."
            )

    return sanitized


class ConfigLoader:
    """Configuration loader with environment variable substitution."""

    # ${VAR_NAME} or ${VAR_NAME:default_value}
    ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*?)(?::([^}]*))?\}")

    def __init__(self, require_env_vars: bool = True, load_env_file: bool = True) -> None:
        """Initialize the configuration loader.

        Args:
            require_env_vars: Whether every referenced variable without a default must be set
                              (if False, unresolved placeholders are left as-is)
            load_env_file: Whether to load a ``.env`` file next to the configuration file
        """
        self.require_env_vars = require_env_vars
        self.load_env_file = load_env_file

    def load_config(self, config_path: Path) -> ProviderConfig:
        """Load and validate configuration from a YAML file.

        Raises:
            ConfigurationError: If loading or validation fails
        """
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        if self.load_env_file:
            env_file = config_path.parent / ".env"
            if env_file.exists():
                # Variables already set in the environment win
                load_dotenv(env_file, override=False)
                logger.debug("Loaded environment file", path=str(env_file))

        try:
            raw_content = config_path.read_text(encoding="utf-8")
            substituted_content = self._substitute_env_vars(raw_content)
            config_data = yaml.safe_load(substituted_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError("Configuration file must contain a YAML object")

        try:
            config = ProviderConfig.model_validate(config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        logger.info("Loaded configuration", path=str(config_path), okta_domain=config.okta.domain)
        return config

    def _substitute_env_vars(self, content: str) -> str:
        """Substitute ``${VAR}`` and ``${VAR:default}`` references.

        Raises:
            SecurityError: If a reference is not allowed or a value is unsafe
            EnvironmentVariableError: If a required variable is missing
        """
        missing_vars: List[str] = []
        security_errors: List[str] = []

        def replace_env_var(match: "re.Match[str]") -> str:
            var_name = match.group(1)
            default_value = match.group(2)

            try:
                _validate_env_var_name(var_name)
                env_value = os.getenv(var_name)
                if env_value is not None:
                    return _sanitize_env_value(env_value)
                if default_value is not None:
                    return _sanitize_env_value(default_value)
            except SecurityError as e:
                security_errors.append(str(e))
                return match.group(0)

            if self.require_env_vars:
                missing_vars.append(var_name)
            return match.group(0)

        result = self.ENV_VAR_PATTERN.sub(replace_env_var, content)

        if security_errors:
            raise SecurityError(f"Security validation failed: {'; '.join(security_errors)}")

        if missing_vars:
            if len(missing_vars) == 1:
                raise EnvironmentVariableError(
                    f"Required environment variable '{missing_vars[0]}' is not set"
                )
            raise EnvironmentVariableError(
                f"Required environment variables are not set: {', '.join(sorted(set(missing_vars)))}"
            )

        return result

    def validate_config_file(self, config_path: Path) -> Tuple[bool, Optional[str]]:
        """Validate a configuration file without keeping the result.

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            self.load_config(config_path)
            return True, None
        except ConfigurationError as e:
            return False, str(e)

    def get_missing_env_vars(self, config_path: Path) -> List[str]:
        """List referenced variables that have no default and are not set."""
        if not config_path.exists():
            return []

        content = config_path.read_text(encoding="utf-8")
        missing = {
            match.group(1)
            for match in self.ENV_VAR_PATTERN.finditer(content)
            if match.group(2) is None and os.getenv(match.group(1)) is None
        }
        return sorted(missing)


def load_config_from_path(config_path: Path, require_env_vars: bool = True) -> ProviderConfig:
    """Convenience function to load configuration from a path."""
    loader = ConfigLoader(require_env_vars=require_env_vars)
    return loader.load_config(config_path)


def load_config_from_dict(config_data: Dict[str, Any]) -> ProviderConfig:
    """Load configuration from a dictionary (for testing).

    Raises:
        ConfigurationError: If validation fails
    """
    try:
        return ProviderConfig.model_validate(config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """Find a configuration file by searching up the directory tree.

    Searches each directory for ``okta-iac.yaml``, ``okta-iac.yml``,
    ``config.yaml`` and ``config.yml``, in that order.

    Args:
        start_path: Directory to start search from (defaults to current directory)

    Returns:
        Path to configuration file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    current_path = start_path.resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current_path / filename
            if config_path.exists():
                return config_path

        parent = current_path.parent
        if parent == current_path:
            break
        current_path = parent

    return None
