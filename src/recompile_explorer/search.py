"""Two-phase search state and the ranked filter it drives.

A view's search moves Idle -> Prompting(text) -> Committed(text). Only a
committed query narrows a list; while the operator is still typing the list
stays as it was.

Ranking contract (the scorer itself is an implementation detail):

- a committed empty query narrows nothing;
- a record matches when every query character appears in its path, in
  order (smart case: case-insensitive unless the query has an uppercase
  letter);
- matches are ordered by descending similarity, ties keep listing order;
- non-matches are excluded.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from difflib import SequenceMatcher
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence, TypeVar

T = TypeVar("T")


class SearchPhase(str, Enum):
    IDLE = "idle"
    PROMPTING = "prompting"
    COMMITTED = "committed"


@dataclass(frozen=True)
class SearchState:
    """Immutable search value; every transition returns a new state."""

    phase: SearchPhase = SearchPhase.IDLE
    text: str = ""

    @classmethod
    def prompting(cls, text: str = "") -> SearchState:
        return cls(SearchPhase.PROMPTING, text)

    @classmethod
    def committed(cls, text: str) -> SearchState:
        return cls(SearchPhase.COMMITTED, text)

    @property
    def is_idle(self) -> bool:
        return self.phase is SearchPhase.IDLE

    @property
    def is_prompting(self) -> bool:
        return self.phase is SearchPhase.PROMPTING

    @property
    def is_committed(self) -> bool:
        return self.phase is SearchPhase.COMMITTED

    @property
    def query(self) -> Optional[str]:
        """The query narrowing the list, or None when nothing is committed."""
        return self.text if self.is_committed else None

    def begin(self) -> SearchState:
        # Already typing: keep the text
        if self.is_prompting:
            return self
        return SearchState.prompting()

    def append(self, char: str) -> SearchState:
        if not self.is_prompting:
            return self
        return replace(self, text=self.text + char)

    def delete(self) -> SearchState:
        if not self.is_prompting:
            return self
        return replace(self, text=self.text[:-1])

    def commit(self) -> SearchState:
        if not self.is_prompting:
            return self
        return SearchState.committed(self.text)

    def cancel(self) -> SearchState:
        return SearchState()

    def apply(self, records: Sequence[T], key: Callable[[T], str]) -> list[T]:
        """Return the records this search leaves visible."""
        if self.query is None:
            return list(records)
        return filter_ranked(records, self.query, key)


def _smart_case(query: str, candidate: str) -> tuple[str, str]:
    if any(ch.isupper() for ch in query):
        return query, candidate
    return query, candidate.lower()


def is_subsequence(query: str, candidate: str) -> bool:
    """True when every character of ``query`` occurs in ``candidate`` in order."""
    query, candidate = _smart_case(query, candidate)
    remaining = iter(candidate)
    return all(ch in remaining for ch in query)


def similarity(query: str, candidate: str) -> float:
    query, candidate = _smart_case(query, candidate)
    return SequenceMatcher(None, query, candidate).ratio()


def filter_ranked(
    records: Iterable[T], query: str, key: Callable[[T], str]
) -> list[T]:
    """Keep the records whose key matches ``query``, best match first."""
    items = list(records)
    if not query:
        return items

    scored = [
        (similarity(query, key(item)), item)
        for item in items
        if is_subsequence(query, key(item))
    ]
    # sorted() is stable, equal scores keep listing order
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _, item in scored]
