"""Wiring between the state machine, the panels, the dispatcher and the server.

Adapter completions never dispatch re-entrantly: callbacks post an event to
the session inbox, and the inbox is drained after the current dispatch
finishes (or on the next :meth:`ExplorerSession.tick`).
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Deque, Sequence, Union

from .events import DEFAULT_MAX_DEPTH, AppEvent, Dispatcher, EventHandler, FilesArrived
from .exceptions import AdapterIOError, ServerExitedError
from .models import FileRecord
from .panels import CausePanel, DependentsPanel, FilePanel
from .protocol import BlockingAdapter, ServerAdapter, ThreadedAdapter, spawn_server
from .state import ApplicationStateMachine, ViewState

if TYPE_CHECKING:
    from .config import ExplorerConfig

logger = logging.getLogger(__name__)

ActivePanel = Union[FilePanel, DependentsPanel]

EXIT_GRACE_SECONDS = 5.0


def connect(config: ExplorerConfig) -> ServerAdapter:
    """Spawn the analysis server and wrap it in the configured adapter."""
    process = spawn_server(config.server_command, cwd=config.server_cwd)
    if config.adapter_mode == "blocking":
        return BlockingAdapter.from_process(process)
    return ThreadedAdapter.from_process(process, buffer_size=config.response_buffer_size)


class ExplorerSession:
    """One browsing session against one adapter.

    Attributes:
        machine: Top-level view/search state
        file_panel: File list cursor
        dependents_panel: Dependents view (chain navigator)
        cause_panel: Cause lookup for the viewed chain link
    """

    def __init__(
        self,
        adapter: ServerAdapter,
        max_dispatch_depth: int = DEFAULT_MAX_DEPTH,
        exit_grace_seconds: float = EXIT_GRACE_SECONDS,
    ) -> None:
        self.adapter = adapter
        self.exit_grace_seconds = exit_grace_seconds
        self.machine = ApplicationStateMachine()
        self.file_panel = FilePanel(self.machine)
        self.dependents_panel = DependentsPanel(self.machine)
        self.cause_panel = CausePanel(self.machine, adapter, self.post)
        self.dispatcher = Dispatcher(self._recipients, max_depth=max_dispatch_depth)
        self._inbox: Deque[AppEvent] = deque()

    @property
    def active_panel(self) -> ActivePanel:
        if self.machine.view is ViewState.DEPENDENTS_BROWSING:
            return self.dependents_panel
        return self.file_panel

    @property
    def should_quit(self) -> bool:
        return self.machine.should_quit

    def _recipients(self) -> Sequence[EventHandler]:
        return (self.active_panel, self.cause_panel, self.machine)

    def post(self, event: AppEvent) -> None:
        """Queue an event for dispatch after the current one completes."""
        self._inbox.append(event)

    def start(self) -> None:
        """Send ``init`` and request the file listing."""
        try:
            self.adapter.initialize()
            self.adapter.request_files(self._on_files)
            self.drain()
        except AdapterIOError as e:
            self._raise_if_exited(e)
            raise

    def _on_files(self, files: list[FileRecord]) -> None:
        self.post(FilesArrived(files=tuple(files)))

    def dispatch(self, event: AppEvent) -> list[AppEvent]:
        """Dispatch one external event, then anything it caused to be posted."""
        try:
            processed = self.dispatcher.dispatch(event)
            self.dependents_panel.sync()
            processed.extend(self.drain())
        except AdapterIOError as e:
            self._raise_if_exited(e)
            raise
        return processed

    def drain(self) -> list[AppEvent]:
        processed: list[AppEvent] = []
        while self._inbox:
            processed.extend(self.dispatcher.dispatch(self._inbox.popleft()))
            self.dependents_panel.sync()
        return processed

    def tick(self) -> int:
        """Per-frame work: deliver adapter completions and check the server.

        Raises:
            ServerExitedError: The analysis server has terminated.
        """
        try:
            delivered = self.adapter.poll_responses()
        except AdapterIOError as e:
            self._raise_if_exited(e)
            raise
        self.drain()
        self.check_health()
        return delivered

    def check_health(self) -> None:
        diagnostics = self.adapter.check_health()
        if diagnostics is not None:
            raise ServerExitedError(self.adapter.returncode, diagnostics)

    def _raise_if_exited(self, error: AdapterIOError) -> None:
        """Report a broken pipe as the server exit that caused it, if it exited.

        The server closes its output before it is reaped, so wait a bounded
        time for the exit instead of polling once.
        """
        diagnostics = self.adapter.check_health(timeout=self.exit_grace_seconds)
        if diagnostics is not None:
            raise ServerExitedError(self.adapter.returncode, diagnostics) from error

    def close(self, timeout: float = 5.0) -> None:
        self.adapter.close(timeout=timeout)
