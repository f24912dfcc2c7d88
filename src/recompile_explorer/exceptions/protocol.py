"""Analysis-server protocol exceptions: pipe failures, bad payloads, exits."""

from typing import Optional

from .base import ExplorerError


class AdapterError(ExplorerError):
    """Base class for failures talking to the analysis server."""

    pass


class AdapterIOError(AdapterError):
    """Raised when the pipe to the server cannot be written or read."""

    def __init__(
        self, reason: str, request_id: Optional[int] = None, hint: Optional[str] = None
    ):
        details = {"reason": reason}
        if request_id is not None:
            details["request_id"] = str(request_id)
        super().__init__("Analysis server pipe failure", details=details, hint=hint)
        self.reason = reason
        self.request_id = request_id


class ResponseDecodeError(AdapterError):
    """Raised when a matched response body does not fit the expected schema."""

    def __init__(self, request_type: str, reason: str, payload: str = ""):
        preview = payload if len(payload) <= 120 else payload[:117] + "..."
        super().__init__(
            f"Could not decode {request_type} response",
            details={"reason": reason, "payload": preview},
        )
        self.request_type = request_type
        self.reason = reason
        self.payload = payload


class ServerExitedError(AdapterError):
    """Raised when the analysis server process has terminated."""

    def __init__(self, returncode: Optional[int], diagnostics: str = ""):
        super().__init__(
            "Analysis server exited",
            details={"returncode": str(returncode)},
        )
        self.returncode = returncode
        self.diagnostics = diagnostics
