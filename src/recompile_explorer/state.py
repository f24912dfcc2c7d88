"""Top-level view state machine.

Two views: the file list and the dependents of one file (the anchor). Each
view owns its own :class:`~recompile_explorer.search.SearchState`; search
events only ever touch the active view's search.

Cancel precedence, first applicable rule wins:

1. the active search is Prompting: abort it;
2. the active search is Committed: clear it;
3. the dependents view is active: return to the file list and drop the anchor;
4. otherwise nothing happens.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .events import (
    AppendSearchChar,
    AppEvent,
    BeginSearch,
    Cancel,
    CommitSearch,
    DeleteSearchChar,
    DependentsViewClosed,
    FilesArrived,
    FileSelected,
    Quit,
)
from .models import FileRecord, RecompileDependency
from .search import SearchState

logger = logging.getLogger(__name__)


class ViewState(str, Enum):
    FILE_BROWSING = "file_browsing"
    DEPENDENTS_BROWSING = "dependents_browsing"


class ApplicationStateMachine:
    """Owns the listing, the active view, the anchor and both searches.

    It is the last recipient of every dispatched event, so panels see an
    event while the state still reflects the moment before it.
    """

    def __init__(self) -> None:
        self.view = ViewState.FILE_BROWSING
        self.files: Optional[tuple[FileRecord, ...]] = None
        self.anchor: Optional[FileRecord] = None
        self.file_search = SearchState()
        self.dependents_search = SearchState()
        self.should_quit = False

    # ── Derived state ─────────────────────────────────────────────

    @property
    def is_loading(self) -> bool:
        return self.files is None

    @property
    def anchor_path(self) -> Optional[str]:
        return self.anchor.path if self.anchor is not None else None

    @property
    def active_search(self) -> SearchState:
        if self.view is ViewState.DEPENDENTS_BROWSING:
            return self.dependents_search
        return self.file_search

    def _set_active_search(self, search: SearchState) -> None:
        if self.view is ViewState.DEPENDENTS_BROWSING:
            self.dependents_search = search
        else:
            self.file_search = search

    def all_dependents(self) -> tuple[RecompileDependency, ...]:
        return self.anchor.dependents if self.anchor is not None else ()

    def visible_files(self) -> list[FileRecord]:
        return self.file_search.apply(self.files or (), key=lambda record: record.path)

    def visible_dependents(self) -> list[RecompileDependency]:
        return self.dependents_search.apply(self.all_dependents(), key=lambda dep: dep.path)

    # ── Event handling ────────────────────────────────────────────

    def handle_event(self, event: AppEvent) -> list[AppEvent]:
        if isinstance(event, FilesArrived):
            self._replace_listing(event.files)
        elif isinstance(event, FileSelected):
            self._open_dependents(event.record)
        elif isinstance(event, Cancel):
            return self._cancel()
        elif isinstance(event, Quit):
            self.should_quit = True
        elif isinstance(event, BeginSearch):
            self._set_active_search(self.active_search.begin())
        elif isinstance(event, AppendSearchChar):
            self._set_active_search(self.active_search.append(event.char))
        elif isinstance(event, DeleteSearchChar):
            self._set_active_search(self.active_search.delete())
        elif isinstance(event, CommitSearch):
            self._set_active_search(self.active_search.commit())
        return []

    def _replace_listing(self, files: tuple[FileRecord, ...]) -> None:
        self.files = tuple(files)
        logger.debug("Received listing of %d file(s)", len(self.files))
        if self.anchor is None:
            return
        # A refreshed listing replaces records wholesale; re-bind the anchor by path
        for record in self.files:
            if record.path == self.anchor.path:
                self.anchor = record
                break

    def _open_dependents(self, record: FileRecord) -> None:
        if self.view is not ViewState.FILE_BROWSING:
            return
        self.view = ViewState.DEPENDENTS_BROWSING
        self.anchor = record
        self.dependents_search = SearchState()

    def _cancel(self) -> list[AppEvent]:
        search = self.active_search
        if search.is_prompting or search.is_committed:
            self._set_active_search(search.cancel())
            return []

        if self.view is ViewState.DEPENDENTS_BROWSING:
            closed = self.anchor_path
            self.view = ViewState.FILE_BROWSING
            self.anchor = None
            self.dependents_search = SearchState()
            return [DependentsViewClosed(anchor=closed)]

        return []
