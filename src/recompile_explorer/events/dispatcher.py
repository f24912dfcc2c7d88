"""Event dispatch loop.

Each event is offered, in a fixed order, to the recipients returned by the
``recipients`` callable (the session supplies: active panel, cause panel,
state machine). Recipients return follow-up events, which are processed
depth-first before :meth:`Dispatcher.dispatch` returns, so one user action
completes as one step before the next frame is drawn.

Follow-ups go on an explicit stack rather than recursive calls; every event
carries its cascade depth and a cascade deeper than ``max_depth`` raises
:class:`DispatchDepthError` instead of looping forever.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol, Sequence

from ..exceptions import DispatchDepthError
from .schema import AppEvent

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32


class EventHandler(Protocol):
    def handle_event(self, event: AppEvent) -> list[AppEvent]: ...


class Dispatcher:
    """Routes events to the current recipients and runs their cascades."""

    def __init__(
        self,
        recipients: Callable[[], Sequence[EventHandler]],
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self._recipients = recipients
        self.max_depth = max_depth

    def dispatch(self, event: AppEvent) -> list[AppEvent]:
        """Process ``event`` and all of its follow-ups.

        Recipients are re-resolved for every event, so follow-ups reach the
        components that are active after the event that produced them.

        Returns:
            Every processed event, in processing order.
        """
        processed: list[AppEvent] = []
        stack: list[tuple[AppEvent, int]] = [(event, 0)]

        while stack:
            current, depth = stack.pop()
            if depth > self.max_depth:
                raise DispatchDepthError(current.name, depth, self.max_depth)

            follow_ups: list[AppEvent] = []
            for recipient in self._recipients():
                follow_ups.extend(recipient.handle_event(current) or ())
            processed.append(current)

            for follow_up in reversed(follow_ups):
                stack.append((follow_up, depth + 1))

        if len(processed) > 1:
            logger.debug(
                "%s cascaded into %d event(s): %s",
                event.name,
                len(processed) - 1,
                ", ".join(e.name for e in processed[1:]),
            )
        return processed
