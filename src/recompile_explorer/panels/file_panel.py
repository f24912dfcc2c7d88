"""Cursor over the (possibly filtered) file listing."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..events import (
    AppEvent,
    Cancel,
    CommitSearch,
    FileSelected,
    MoveNext,
    MovePrevious,
    Select,
)
from ..models import FileRecord

if TYPE_CHECKING:
    from ..state import ApplicationStateMachine


class FilePanel:
    """Active while browsing files. Selecting a row emits :class:`FileSelected`."""

    def __init__(self, machine: ApplicationStateMachine) -> None:
        self._machine = machine
        self._cursor = 0

    @property
    def cursor(self) -> int:
        """Cursor clamped to the list currently visible."""
        count = len(self._machine.visible_files())
        return min(self._cursor, max(count - 1, 0))

    @property
    def selected(self) -> Optional[FileRecord]:
        visible = self._machine.visible_files()
        if not visible:
            return None
        return visible[self.cursor]

    def handle_event(self, event: AppEvent) -> list[AppEvent]:
        if isinstance(event, MoveNext):
            count = len(self._machine.visible_files())
            self._cursor = min(self.cursor + 1, max(count - 1, 0))
        elif isinstance(event, MovePrevious):
            self._cursor = max(self.cursor - 1, 0)
        elif isinstance(event, Select):
            record = self.selected
            if record is not None:
                return [FileSelected(record=record)]
        elif isinstance(event, CommitSearch):
            if self._machine.file_search.is_prompting:
                self._cursor = 0
        elif isinstance(event, Cancel):
            # The list widens again once the committed filter is cleared
            if self._machine.file_search.is_committed:
                self._cursor = 0
        return []
