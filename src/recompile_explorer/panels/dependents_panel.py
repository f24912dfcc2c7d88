"""Dependents view: binds the chain navigator to the anchor's visible dependents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..events import (
    AppEvent,
    Cancel,
    CommitSearch,
    MoveNext,
    MovePrevious,
    Select,
)
from .navigator import DependencyChainNavigator

if TYPE_CHECKING:
    from ..state import ApplicationStateMachine


class DependentsPanel:
    def __init__(self, machine: ApplicationStateMachine) -> None:
        self._machine = machine
        self.navigator = DependencyChainNavigator()
        self._anchor_path: Optional[str] = None

    def sync(self) -> None:
        """Follow the state machine: new anchor means a fresh cursor."""
        anchor_path = self._machine.anchor_path
        if anchor_path != self._anchor_path:
            self._anchor_path = anchor_path
            self.navigator = DependencyChainNavigator(self._machine.visible_dependents())
        else:
            self.navigator.bind(self._machine.visible_dependents())

    def handle_event(self, event: AppEvent) -> list[AppEvent]:
        self.sync()
        if isinstance(event, MoveNext):
            return self.navigator.move_down()
        if isinstance(event, MovePrevious):
            return self.navigator.move_up()
        if isinstance(event, Select):
            return self.navigator.toggle()
        if isinstance(event, Cancel):
            return self.navigator.reset()
        if isinstance(event, CommitSearch) and self._machine.dependents_search.is_prompting:
            return self.navigator.reset()
        return []
