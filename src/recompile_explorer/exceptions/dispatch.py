"""Event dispatch exceptions."""

from .base import ExplorerError


class DispatchDepthError(ExplorerError):
    """Raised when a cascade of follow-up events nests deeper than allowed."""

    def __init__(self, event_name: str, depth: int, max_depth: int):
        super().__init__(
            f"Event cascade exceeded maximum depth at {event_name}",
            details={"depth": str(depth), "max_depth": str(max_depth)},
        )
        self.event_name = event_name
        self.depth = depth
        self.max_depth = max_depth
