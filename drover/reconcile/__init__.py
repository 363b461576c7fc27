"""Event-to-action reconciliation core."""

from __future__ import annotations

from .batch import BatchFailure, BatchReconciler, BatchResult, ReconcileStep
from .cards import filter_project_cards
from .context import PullRequestActions, ReconcileContext
from .events import Event, EventKind, parse_event
from .fetcher import MAX_PULL_REQUESTS, PullRequestFetcher
from .handlers import ReconciliationHandlers
from .observability import ErrorCategory, ReconcileEventLogger, categorize_error
from .outcome import OutcomeStatus, ReconcileOutcome, SkipReason
from .reviews import ReviewGate
from .router import ROUTED_KINDS, EventRouter

__all__ = [
    "MAX_PULL_REQUESTS",
    "ROUTED_KINDS",
    "BatchFailure",
    "BatchReconciler",
    "BatchResult",
    "ErrorCategory",
    "Event",
    "EventKind",
    "EventRouter",
    "OutcomeStatus",
    "PullRequestActions",
    "PullRequestFetcher",
    "ReconcileContext",
    "ReconcileEventLogger",
    "ReconcileOutcome",
    "ReconcileStep",
    "ReconciliationHandlers",
    "ReviewGate",
    "SkipReason",
    "categorize_error",
    "filter_project_cards",
    "parse_event",
]
