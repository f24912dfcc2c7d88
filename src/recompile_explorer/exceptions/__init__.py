"""Exception hierarchy for Recompile Explorer."""

from .base import ExplorerError
from .config import ConfigurationError, InvalidConfigError
from .dispatch import DispatchDepthError
from .protocol import (
    AdapterError,
    AdapterIOError,
    ResponseDecodeError,
    ServerExitedError,
)

__all__ = [
    "ExplorerError",
    "ConfigurationError",
    "InvalidConfigError",
    "AdapterError",
    "AdapterIOError",
    "ResponseDecodeError",
    "ServerExitedError",
    "DispatchDepthError",
]
