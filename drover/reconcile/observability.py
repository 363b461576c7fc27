"""Observability primitives for event reconciliation.

Every path through a handler, including the ones that do nothing, emits a
structured ``[event] key=value`` log line so operators can tell "nothing to
do" apart from "something went wrong". Failures carry an error category
suitable for alert routing.
"""

from __future__ import annotations

import enum
import typing as typ

import httpx

from drover.errors import ClientInputError, ConfigurationError, UpstreamSchemaError
from drover.github.errors import GitHubAPIError, GitHubResponseShapeError
from drover.logging import get_logger, log_event

if typ.TYPE_CHECKING:
    from .batch import BatchResult, ReconcileStep
    from .events import EventKind
    from .outcome import SkipReason

logger = get_logger(__name__)


class ReconcileEventType(enum.StrEnum):
    """Structured log event types for reconciliation observability."""

    EVENT_RECEIVED = "reconcile.event.received"
    EVENT_IGNORED = "reconcile.event.ignored"
    PULL_REQUEST_RECONCILED = "reconcile.pull_request.reconciled"
    BATCH_COMPLETED = "reconcile.batch.completed"
    ITEM_FAILED = "reconcile.item.failed"
    CARD_SKIPPED = "reconcile.card.skipped"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (GitHubResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (UpstreamSchemaError, ErrorCategory.SCHEMA_DRIFT),
    (ConfigurationError, ErrorCategory.CONFIGURATION),
    (ClientInputError, ErrorCategory.CLIENT_ERROR),
    (httpx.TransportError, ErrorCategory.TRANSIENT),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Return the alert-routing category for ``exc``.

    GitHub 5xx responses and transport failures are transient; other GitHub
    error statuses are client errors.
    """
    if isinstance(exc, GitHubAPIError):
        return (
            ErrorCategory.TRANSIENT if exc.server_error else ErrorCategory.CLIENT_ERROR
        )

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class ReconcileEventLogger:
    """Emit structured reconciliation events through femtologging.

    Events are emitted at INFO level for received, ignored and completed work,
    and at ERROR level for per-item failures.
    """

    def log_event_received(self, kind: EventKind) -> None:
        """Log that an event entered the router."""
        log_event(logger, ReconcileEventType.EVENT_RECEIVED, event_kind=kind)

    def log_event_ignored(
        self, kind: EventKind, reason: SkipReason, detail: object = None
    ) -> None:
        """Log an event that needed no work, with its distinct reason."""
        log_event(
            logger,
            ReconcileEventType.EVENT_IGNORED,
            event_kind=kind,
            reason=reason,
            detail=detail,
        )

    def log_pull_request_reconciled(self, kind: EventKind, number: int) -> None:
        """Log a completed single pull request pipeline."""
        log_event(
            logger,
            ReconcileEventType.PULL_REQUEST_RECONCILED,
            event_kind=kind,
            pull_request=number,
        )

    def log_batch_completed(
        self, label: str, step: ReconcileStep, result: BatchResult
    ) -> None:
        """Log the tally of a batch run."""
        log_event(
            logger,
            ReconcileEventType.BATCH_COMPLETED,
            target=label,
            step=step,
            attempted=result.attempted,
            succeeded=result.succeeded,
            failed=len(result.failures),
        )

    def log_item_failed(self, label: str, number: int, error: BaseException) -> None:
        """Log a pull request that failed inside a batch."""
        log_event(
            logger,
            ReconcileEventType.ITEM_FAILED,
            level="ERROR",
            exc_info=error,
            target=label,
            pull_request=number,
            error_type=type(error).__name__,
            error_category=categorize_error(error),
            error_message=str(error),
        )

    def log_card_skipped(self, card_id: int | None, reason: SkipReason) -> None:
        """Log a project card that does not name a pull request of this repo."""
        log_event(
            logger,
            ReconcileEventType.CARD_SKIPPED,
            card_id=card_id,
            reason=reason,
        )
