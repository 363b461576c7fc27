"""Reported results of reconciling one event."""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

if typ.TYPE_CHECKING:
    from .batch import BatchResult
    from .events import EventKind


class OutcomeStatus(enum.StrEnum):
    """What an invocation ended up doing."""

    IGNORED = "ignored"
    NOTHING_TO_DO = "nothing_to_do"
    RECONCILED = "reconciled"


class SkipReason(enum.StrEnum):
    """Distinct reasons an event, a card or a batch produced no work."""

    IGNORED_ACTION = "ignored_action"
    REVIEW_NOT_APPROVED = "review_not_approved"
    NOT_A_PULL_REQUEST = "not_a_pull_request"
    NOT_A_BRANCH = "not_a_branch"
    IGNORED_STATE = "ignored_state"
    EMPTY_BRANCH_LIST = "empty_branch_list"
    CHECK_INCOMPLETE = "check_incomplete"
    CHECK_UNSUCCESSFUL = "check_unsuccessful"
    NO_CHECK_TARGET = "no_check_target"
    EMPTY_COLUMN = "empty_column"
    NO_PULL_REQUESTS = "no_pull_requests"
    NONE_RECONCILED = "none_reconciled"
    MISSING_CONTENT_URL = "missing_content_url"
    OTHER_REPOSITORY = "other_repository"


@dataclasses.dataclass(frozen=True, slots=True)
class ReconcileOutcome:
    """Summary of one routed event.

    Attributes
    ----------
    kind
        Event kind that was routed.
    status
        Whether the event was ignored, found nothing to do or reconciled
        pull requests.
    reason
        Distinct skip reason for ignored and nothing-to-do outcomes.
    batch
        Tally of a batch run, when the handler ran one.
    pull_request_number
        Pull request run through the single pipeline, when there was one.

    """

    kind: EventKind
    status: OutcomeStatus
    reason: SkipReason | None = None
    batch: BatchResult | None = None
    pull_request_number: int | None = None

    @classmethod
    def ignored(cls, kind: EventKind, reason: SkipReason) -> ReconcileOutcome:
        """Return an outcome for an event filtered out before any work."""
        return cls(kind=kind, status=OutcomeStatus.IGNORED, reason=reason)

    @classmethod
    def reconciled_single(cls, kind: EventKind, number: int) -> ReconcileOutcome:
        """Return an outcome for a completed single pull request pipeline."""
        return cls(
            kind=kind,
            status=OutcomeStatus.RECONCILED,
            pull_request_number=number,
        )

    @classmethod
    def from_batch(cls, kind: EventKind, batch: BatchResult) -> ReconcileOutcome:
        """Return an outcome for a batch run.

        Empty batches and batches where every item failed are informational
        "nothing to do" outcomes rather than errors.
        """
        if batch.attempted == 0:
            return cls(
                kind=kind,
                status=OutcomeStatus.NOTHING_TO_DO,
                reason=SkipReason.NO_PULL_REQUESTS,
                batch=batch,
            )
        if batch.succeeded == 0:
            return cls(
                kind=kind,
                status=OutcomeStatus.NOTHING_TO_DO,
                reason=SkipReason.NONE_RECONCILED,
                batch=batch,
            )
        return cls(kind=kind, status=OutcomeStatus.RECONCILED, batch=batch)

    @classmethod
    def nothing_to_do(cls, kind: EventKind, reason: SkipReason) -> ReconcileOutcome:
        """Return an outcome for an event whose discovery found no work."""
        return cls(kind=kind, status=OutcomeStatus.NOTHING_TO_DO, reason=reason)

    def to_dict(self) -> dict[str, typ.Any]:
        """Render the outcome as a JSON-compatible mapping."""
        data: dict[str, typ.Any] = {
            "event": str(self.kind),
            "status": str(self.status),
        }
        if self.reason is not None:
            data["reason"] = str(self.reason)
        if self.pull_request_number is not None:
            data["pull_request"] = self.pull_request_number
        if self.batch is not None:
            data["attempted"] = self.batch.attempted
            data["succeeded"] = self.batch.succeeded
            data["failed"] = [
                failure.pull_request_number for failure in self.batch.failures
            ]
        return data
