"""Application events and the dispatcher that routes them between components."""

from .dispatcher import DEFAULT_MAX_DEPTH, Dispatcher, EventHandler
from .schema import (
    EVENT_TYPES,
    AppendSearchChar,
    AppEvent,
    BeginSearch,
    Cancel,
    CommitSearch,
    DeleteSearchChar,
    DependencyCausesArrived,
    DependencyCausesFailed,
    DependentsViewClosed,
    FilesArrived,
    FileSelected,
    MoveNext,
    MovePrevious,
    Quit,
    Select,
    StartViewLink,
    StopViewLink,
)

__all__ = [
    "AppEvent",
    "EVENT_TYPES",
    "MoveNext",
    "MovePrevious",
    "Select",
    "Cancel",
    "Quit",
    "BeginSearch",
    "AppendSearchChar",
    "DeleteSearchChar",
    "CommitSearch",
    "FilesArrived",
    "DependencyCausesArrived",
    "DependencyCausesFailed",
    "FileSelected",
    "StartViewLink",
    "StopViewLink",
    "DependentsViewClosed",
    "Dispatcher",
    "EventHandler",
    "DEFAULT_MAX_DEPTH",
]
