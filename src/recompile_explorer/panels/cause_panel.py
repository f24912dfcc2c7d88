"""Dependency-cause lookup for the chain link being viewed.

Listens for :class:`StartViewLink` / :class:`StopViewLink` from the navigator
and fetches the snippets explaining a link on demand. The request is always
anchored at the browsed file: ``source`` is the link's sink and ``sink`` is
the anchor path.

Results are cached per ``(sink, reason)`` for the current anchor only and
dropped when the dependents view closes. A response for an anchor that is
no longer current is ignored. A response body that cannot be decoded fails
only that lookup; viewing the link again retries it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from ..events import (
    AppEvent,
    DependencyCausesArrived,
    DependencyCausesFailed,
    DependentsViewClosed,
    StartViewLink,
    StopViewLink,
)
from ..exceptions import ResponseDecodeError
from ..models import DependencyCause, DependencyLink, RecompileReason

if TYPE_CHECKING:
    from ..protocol import ServerAdapter
    from ..state import ApplicationStateMachine

logger = logging.getLogger(__name__)

CacheKey = tuple[str, RecompileReason]


class CausePanel:
    """Always a dispatch recipient, whichever view is active."""

    def __init__(
        self,
        machine: ApplicationStateMachine,
        adapter: ServerAdapter,
        post: Callable[[AppEvent], None],
    ) -> None:
        self._machine = machine
        self._adapter = adapter
        self._post = post
        self._anchor: Optional[str] = None
        self._cache: dict[CacheKey, tuple[DependencyCause, ...]] = {}
        self._pending: set[CacheKey] = set()
        self._failed: dict[CacheKey, str] = {}
        self.viewing: Optional[DependencyLink] = None
        self.viewing_reason: Optional[RecompileReason] = None

    @property
    def cached_sinks(self) -> list[str]:
        return [sink for sink, _ in self._cache]

    @property
    def is_loading(self) -> bool:
        return (
            self.viewing is not None
            and self.displayed_causes() is None
            and self.displayed_failure() is None
        )

    def displayed_causes(self) -> Optional[tuple[DependencyCause, ...]]:
        """Causes for the viewed link; None when nothing is viewed or still loading."""
        if self.viewing is None or self.viewing_reason is None:
            return None
        return self._cache.get((self.viewing.sink, self.viewing_reason))

    def displayed_failure(self) -> Optional[str]:
        """Why the viewed link's lookup failed, if it did."""
        if self.viewing is None or self.viewing_reason is None:
            return None
        return self._failed.get((self.viewing.sink, self.viewing_reason))

    def handle_event(self, event: AppEvent) -> list[AppEvent]:
        if isinstance(event, StartViewLink):
            self._start_viewing(event.link, event.reason)
        elif isinstance(event, StopViewLink):
            if self.viewing == event.link:
                self.viewing = None
                self.viewing_reason = None
        elif isinstance(event, DependencyCausesArrived):
            self._store(event)
        elif isinstance(event, DependencyCausesFailed):
            self._record_failure(event)
        elif isinstance(event, DependentsViewClosed):
            self._discard()
        return []

    def _start_viewing(self, link: DependencyLink, reason: RecompileReason) -> None:
        anchor = self._machine.anchor_path
        if anchor is None:
            logger.debug("Ignoring view of %s -> %s without an anchor", link.source, link.sink)
            return
        if anchor != self._anchor:
            self._discard()
            self._anchor = anchor

        self.viewing = link
        self.viewing_reason = reason

        key = (link.sink, reason)
        if key in self._cache or key in self._pending:
            return

        self._failed.pop(key, None)
        self._pending.add(key)
        post = self._post

        def on_complete(causes: list[DependencyCause]) -> None:
            post(
                DependencyCausesArrived(
                    anchor=anchor, sink=link.sink, reason=reason, causes=tuple(causes)
                )
            )

        def on_error(error: ResponseDecodeError) -> None:
            post(
                DependencyCausesFailed(
                    anchor=anchor, sink=link.sink, reason=reason, message=str(error)
                )
            )

        self._adapter.request_dependency_causes(
            link.sink, anchor, reason, on_complete, on_error=on_error
        )

    def _store(self, event: DependencyCausesArrived) -> None:
        if event.anchor != self._anchor:
            logger.debug("Dropping causes for stale anchor %s", event.anchor)
            return
        key = (event.sink, event.reason)
        if key not in self._pending:
            return
        self._pending.discard(key)
        self._cache[key] = event.causes

    def _record_failure(self, event: DependencyCausesFailed) -> None:
        if event.anchor != self._anchor:
            return
        key = (event.sink, event.reason)
        if key not in self._pending:
            return
        self._pending.discard(key)
        self._failed[key] = event.message
        logger.error(
            "Cause lookup for %s -> %s failed: %s", event.sink, event.anchor, event.message
        )

    def _discard(self) -> None:
        self._anchor = None
        self._cache.clear()
        self._pending.clear()
        self._failed.clear()
        self.viewing = None
        self.viewing_reason = None
