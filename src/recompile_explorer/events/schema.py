"""Application events.

``AppEvent`` is a closed set: terminal intents, adapter completions, and the
follow-up events components emit while handling those. Every event is an
immutable value so it can be queued and re-offered safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..models import DependencyCause, DependencyLink, FileRecord, RecompileReason


@dataclass(frozen=True)
class AppEvent:
    """Base class for every event the dispatcher accepts."""

    @property
    def name(self) -> str:
        return type(self).__name__


# ---------------------------------------------------------------------------
# Navigation intents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MoveNext(AppEvent):
    pass


@dataclass(frozen=True)
class MovePrevious(AppEvent):
    pass


@dataclass(frozen=True)
class Select(AppEvent):
    """Select the row under the cursor (drill in, or expand/collapse)."""


@dataclass(frozen=True)
class Cancel(AppEvent):
    pass


@dataclass(frozen=True)
class Quit(AppEvent):
    pass


# ---------------------------------------------------------------------------
# Search intents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BeginSearch(AppEvent):
    pass


@dataclass(frozen=True)
class AppendSearchChar(AppEvent):
    char: str


@dataclass(frozen=True)
class DeleteSearchChar(AppEvent):
    pass


@dataclass(frozen=True)
class CommitSearch(AppEvent):
    pass


# ---------------------------------------------------------------------------
# Adapter completions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FilesArrived(AppEvent):
    files: tuple[FileRecord, ...]


@dataclass(frozen=True)
class DependencyCausesArrived(AppEvent):
    """Causes fetched for ``sink`` while ``anchor`` was the browsed file."""

    anchor: str
    sink: str
    reason: RecompileReason
    causes: tuple[DependencyCause, ...]


@dataclass(frozen=True)
class DependencyCausesFailed(AppEvent):
    """The cause lookup for ``sink`` got a response that could not be decoded."""

    anchor: str
    sink: str
    reason: RecompileReason
    message: str


# ---------------------------------------------------------------------------
# Follow-ups emitted by components
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileSelected(AppEvent):
    record: FileRecord


@dataclass(frozen=True)
class StartViewLink(AppEvent):
    link: DependencyLink
    reason: RecompileReason


@dataclass(frozen=True)
class StopViewLink(AppEvent):
    link: DependencyLink
    reason: RecompileReason


@dataclass(frozen=True)
class DependentsViewClosed(AppEvent):
    anchor: Optional[str]


EVENT_TYPES: tuple[type[AppEvent], ...] = (
    MoveNext,
    MovePrevious,
    Select,
    Cancel,
    Quit,
    BeginSearch,
    AppendSearchChar,
    DeleteSearchChar,
    CommitSearch,
    FilesArrived,
    DependencyCausesArrived,
    DependencyCausesFailed,
    FileSelected,
    StartViewLink,
    StopViewLink,
    DependentsViewClosed,
)
