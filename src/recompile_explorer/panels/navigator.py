"""Two-level cursor over a file's dependents and their dependency chains.

The outer cursor walks the dependents list. At most one entry is expanded;
while the outer cursor sits on the expanded entry, moving down walks into
its chain (the inner cursor) and each link reached is reported with
:class:`StartViewLink`. Leaving a link always reports :class:`StopViewLink`
for it first, so consumers never see two links viewed at once.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..events import AppEvent, StartViewLink, StopViewLink
from ..models import DependencyLink, RecompileDependency, RecompileReason


class DependencyChainNavigator:
    """Cursor state ``(outer, expanded_id, inner)`` plus the backing entries.

    Invariants:
        - ``inner`` is set only while ``outer`` points at the expanded entry;
        - ``inner`` is always a valid index into that entry's chain.
    """

    def __init__(self, entries: Iterable[RecompileDependency] = ()) -> None:
        self._entries: tuple[RecompileDependency, ...] = tuple(entries)
        self.outer = 0
        self.expanded_id: Optional[str] = None
        self.inner: Optional[int] = None

    @property
    def entries(self) -> tuple[RecompileDependency, ...]:
        return self._entries

    @property
    def cursor(self) -> tuple[int, Optional[int]]:
        return self.outer, self.inner

    @property
    def current(self) -> Optional[RecompileDependency]:
        if not self._entries:
            return None
        return self._entries[self.outer]

    @property
    def viewing(self) -> Optional[tuple[DependencyLink, RecompileReason]]:
        """The link whose causes are being shown, with its entry's reason."""
        entry = self.current
        if entry is None or self.inner is None:
            return None
        return entry.dependency_chain[self.inner], entry.reason

    def is_expanded(self, entry: RecompileDependency) -> bool:
        return entry.id == self.expanded_id

    def bind(self, entries: Iterable[RecompileDependency]) -> None:
        """Swap the backing list, keeping the cursor wherever it is still valid."""
        entries = tuple(entries)
        if entries == self._entries:
            return
        self._entries = entries

        if self.expanded_id is not None and not any(
            entry.id == self.expanded_id for entry in entries
        ):
            self.expanded_id = None
        self.outer = min(self.outer, max(len(entries) - 1, 0))

        entry = self.current
        if (
            self.inner is not None
            and (entry is None
                 or not self.is_expanded(entry)
                 or self.inner >= len(entry.dependency_chain))
        ):
            self.inner = None

    # ── Operations ────────────────────────────────────────────────

    def _start(self, entry: RecompileDependency, index: int) -> StartViewLink:
        return StartViewLink(link=entry.dependency_chain[index], reason=entry.reason)

    def _stop(self, entry: RecompileDependency, index: int) -> StopViewLink:
        return StopViewLink(link=entry.dependency_chain[index], reason=entry.reason)

    def toggle(self) -> list[AppEvent]:
        """Expand the entry under the cursor, or collapse it if it is expanded."""
        entry = self.current
        if entry is None:
            return []

        if self.is_expanded(entry):
            events: list[AppEvent] = []
            if self.inner is not None:
                events.append(self._stop(entry, self.inner))
            self.expanded_id = None
            self.inner = None
            return events

        # Any previous expansion was not under the cursor, so nothing was viewed
        self.expanded_id = entry.id
        self.inner = None
        return []

    def move_down(self) -> list[AppEvent]:
        entry = self.current
        if entry is None:
            return []
        last = len(self._entries) - 1
        chain = entry.dependency_chain

        if not self.is_expanded(entry) or (self.inner is None and not chain):
            self.outer = min(self.outer + 1, last)
            return []

        if self.inner is None:
            self.inner = 0
            return [self._start(entry, 0)]

        if self.inner < len(chain) - 1:
            stop = self._stop(entry, self.inner)
            self.inner += 1
            return [stop, self._start(entry, self.inner)]

        stop = self._stop(entry, self.inner)
        self.inner = None
        if self.outer < last:
            self.outer += 1
        return [stop]

    def move_up(self) -> list[AppEvent]:
        entry = self.current
        if entry is None:
            return []

        if self.inner is not None:
            stop = self._stop(entry, self.inner)
            if self.inner == 0:
                self.inner = None
                return [stop]
            self.inner -= 1
            return [stop, self._start(entry, self.inner)]

        if self.outer == 0:
            return []

        self.outer -= 1
        entry = self._entries[self.outer]
        if self.is_expanded(entry) and entry.dependency_chain:
            self.inner = len(entry.dependency_chain) - 1
            return [self._start(entry, self.inner)]
        return []

    def reset(self) -> list[AppEvent]:
        """Return to the first entry with nothing expanded."""
        events: list[AppEvent] = []
        viewing = self.viewing
        if viewing is not None:
            link, reason = viewing
            events.append(StopViewLink(link=link, reason=reason))
        self.outer = 0
        self.expanded_id = None
        self.inner = None
        return events
