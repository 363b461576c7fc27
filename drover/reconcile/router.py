"""Closed dispatch from event kinds to reconciliation handlers."""

from __future__ import annotations

import typing as typ

from .events import (
    CheckRunEvent,
    CheckSuiteEvent,
    EventKind,
    IssueCommentEvent,
    PullRequestEvent,
    PullRequestReviewEvent,
    PushEvent,
    ScheduleEvent,
    StatusEvent,
    parse_event,
)
from .handlers import ReconciliationHandlers
from .observability import ReconcileEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .context import ReconcileContext
    from .events import Event
    from .outcome import ReconcileOutcome

ROUTED_KINDS: frozenset[EventKind] = frozenset(EventKind)


class EventRouter:
    """Route each recognised event kind to exactly one handler.

    Adding a kind means adding an :class:`~drover.reconcile.events.EventKind`
    member, its event variant and a ``case`` below; the type checker flags a
    variant without a ``case`` through :func:`typing.assert_never`.
    """

    def __init__(
        self,
        handlers: ReconciliationHandlers,
        *,
        event_logger: ReconcileEventLogger | None = None,
    ) -> None:
        """Initialise with the handlers events are dispatched to."""
        self._handlers = handlers
        self._events = event_logger or ReconcileEventLogger()

    @classmethod
    def for_context(cls, context: ReconcileContext) -> EventRouter:
        """Build a router whose handlers share one event logger."""
        event_logger = ReconcileEventLogger()
        handlers = ReconciliationHandlers(context, event_logger=event_logger)
        return cls(handlers, event_logger=event_logger)

    async def route(
        self, kind: str, payload: cabc.Mapping[str, typ.Any] | None
    ) -> ReconcileOutcome:
        """Decode a raw event and dispatch it.

        Raises
        ------
        UnrecognizedEventError
            If ``kind`` is not one of the routed kinds.
        InvalidEventPayloadError
            If the payload does not match its kind.

        """
        return await self.dispatch(parse_event(kind, payload))

    async def dispatch(self, event: Event) -> ReconcileOutcome:
        """Dispatch a decoded event to its handler."""
        self._events.log_event_received(event.kind)
        match event:
            case PushEvent():
                return await self._handlers.on_push(event)
            case StatusEvent():
                return await self._handlers.on_status(event)
            case PullRequestEvent():
                return await self._handlers.on_pull_request(event)
            case CheckSuiteEvent() | CheckRunEvent():
                return await self._handlers.on_check(event)
            case PullRequestReviewEvent():
                return await self._handlers.on_pull_request_review(event)
            case ScheduleEvent():
                return await self._handlers.on_schedule(event)
            case IssueCommentEvent():
                return await self._handlers.on_issue_comment(event)
            case _:
                typ.assert_never(event)
