"""Configuration exceptions."""

from typing import Any, Dict, Optional

from .base import ExplorerError


class ConfigurationError(ExplorerError):
    """Base class for configuration-related errors."""

    exit_code = 2

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(
            message,
            details=details,
            hint="Check recompile-explorer.toml and RECOMPILE_EXPLORER_* variables",
        )


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason
