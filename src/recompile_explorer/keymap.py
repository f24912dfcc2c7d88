"""Terminal key to application intent translation."""

from __future__ import annotations

from typing import Optional

from .events import (
    AppendSearchChar,
    AppEvent,
    BeginSearch,
    Cancel,
    CommitSearch,
    DeleteSearchChar,
    MoveNext,
    MovePrevious,
    Quit,
    Select,
)
from .state import ApplicationStateMachine

NAVIGATION_KEYS = {
    "j": MoveNext,
    "down": MoveNext,
    "k": MovePrevious,
    "up": MovePrevious,
    "enter": Select,
    "slash": BeginSearch,
    "escape": Cancel,
    "q": Quit,
}

PROMPT_KEYS = {
    "down": MoveNext,
    "up": MovePrevious,
    "enter": CommitSearch,
    "escape": Cancel,
    "backspace": DeleteSearchChar,
}

INSTRUCTIONS = "j/k or ↑/↓ move · enter select · / search · esc back · q quit"
PROMPT_INSTRUCTIONS = "enter apply · esc cancel · backspace delete"


def translate_key(
    key: str, character: Optional[str], machine: ApplicationStateMachine
) -> Optional[AppEvent]:
    """Map a key press to an event, or None if the key means nothing here.

    ``key`` uses Textual key names ("down", "enter", "slash", ...). While the
    active view's search is prompting, printable characters are typed into it.
    """
    if machine.active_search.is_prompting:
        event_type = PROMPT_KEYS.get(key)
        if event_type is not None:
            return event_type()
        if character is not None and len(character) == 1 and character.isprintable():
            return AppendSearchChar(char=character)
        return None

    event_type = NAVIGATION_KEYS.get(key)
    return event_type() if event_type is not None else None
