"""Configuration loading and management for Recompile Explorer.

Configuration sources are merged in priority order (lowest to highest):
    1. Defaults (defined in ExplorerConfig)
    2. Global config (~/.recompile-explorer.toml)
    3. Project config (./recompile-explorer.toml)
    4. Explicit config file
    5. Environment variables (RECOMPILE_EXPLORER_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(adapter_mode="blocking")
    >>> config.adapter_mode
    'blocking'
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]
AdapterMode = Literal["threaded", "blocking"]

ENV_PREFIX = "RECOMPILE_EXPLORER_"
CONFIG_FILENAME = "recompile-explorer.toml"


@dataclass(frozen=True)
class ExplorerConfig:
    """Settings for one explorer run.

    Attributes:
        Analysis server:
            server_command: argv used to start the analysis server
            server_cwd: Working directory for the server (None = current)
            shutdown_timeout_seconds: Grace period before the server is killed

        Adapter:
            adapter_mode: "threaded" (background I/O thread) or "blocking"
            response_buffer_size: Capacity of the completed-response channel

        Event loop:
            poll_interval_ms: Frame interval for draining completions
            max_dispatch_depth: Deepest allowed cascade of follow-up events

        Output control:
            log_file: Optional file receiving log records
            verbosity: Logging verbosity level
    """

    # Analysis server
    server_command: list[str] = field(default_factory=lambda: ["mix", "run", "--no-halt"])
    server_cwd: Optional[str] = None
    shutdown_timeout_seconds: float = 5.0

    # Adapter
    adapter_mode: AdapterMode = "threaded"
    response_buffer_size: int = 64

    # Event loop
    poll_interval_ms: int = 25
    max_dispatch_depth: int = 32

    # Output control
    log_file: Optional[str] = None
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.server_command or not all(
            isinstance(part, str) and part for part in self.server_command
        ):
            raise ValueError("server_command must be a non-empty list of strings")
        if self.shutdown_timeout_seconds <= 0:
            raise ValueError("shutdown_timeout_seconds must be positive")

        if self.adapter_mode not in ("threaded", "blocking"):
            raise ValueError("adapter_mode must be 'threaded' or 'blocking'")
        if self.response_buffer_size < 1:
            raise ValueError("response_buffer_size must be at least 1")

        if self.poll_interval_ms < 1:
            raise ValueError("poll_interval_ms must be at least 1")
        if self.max_dispatch_depth < 1:
            raise ValueError("max_dispatch_depth must be at least 1")

        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError("verbosity must be one of quiet, normal, verbose")

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> ExplorerConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); None values
            are ignored so unset options do not mask file settings

    Returns:
        Validated ExplorerConfig instance

    Raises:
        ConfigurationError: If a config file is missing or invalid, or a
            value fails validation
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / f".{CONFIG_FILENAME}"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / CONFIG_FILENAME
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    # Convert verbosity boolean flags to string
    if "verbose" in overrides:
        if overrides.pop("verbose"):
            overrides["verbosity"] = "verbose"
    if "quiet" in overrides:
        if overrides.pop("quiet"):
            overrides["verbosity"] = "quiet"

    merged.update({key: value for key, value in overrides.items() if value is not None})

    if isinstance(merged.get("server_command"), str):
        merged["server_command"] = shlex.split(merged["server_command"])

    try:
        return ExplorerConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")
    except ValueError as e:
        raise ConfigurationError(str(e))


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from RECOMPILE_EXPLORER_* environment variables.

    ``RECOMPILE_EXPLORER_SERVER_COMMAND`` is split with shell quoting rules;
    other variables are parsed according to the field's type.
    """
    type_hints = get_type_hints(ExplorerConfig)

    result: dict[str, Any] = {}
    for field_name in ExplorerConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hints[field_name])
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is list or type_hint is list:
        return shlex.split(value)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    # String (including Literal types like Verbosity)
    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file and return the parsed dict.

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        # tomli for Python 3.9-3.10
        import tomli as tomllib  # type: ignore

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")
