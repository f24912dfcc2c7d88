"""Base exception for Recompile Explorer."""

from typing import Dict, Optional


class ExplorerError(Exception):
    """Base exception for all Recompile Explorer errors.

    Attributes:
        exit_code: Status the CLI exits with when this error ends a command
        hint: What the operator can do about it, shown under the message
    """

    exit_code = 1

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, str]] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.hint = hint

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message
