"""Update and merge pipelines over one or many pull requests.

A single pull request pipeline lets failures propagate to the invoker. A batch
runs the same pipeline over each pull request in order, folding each item into
either a success or a recorded failure so one bad pull request never stops
the rest.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from .observability import ReconcileEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from drover.github.models import PullRequest

    from .context import ReconcileContext
    from .reviews import ReviewGate


class ReconcileStep(enum.StrEnum):
    """Which half of the pipeline a batch applies."""

    UPDATE = "update"
    MERGE = "merge"
    UPDATE_AND_MERGE = "update_and_merge"

    @property
    def updates(self) -> bool:
        """Return True when the step brings pull requests up to date."""
        return self is not ReconcileStep.MERGE

    @property
    def merges(self) -> bool:
        """Return True when the step attempts a merge."""
        return self is not ReconcileStep.UPDATE


@dataclasses.dataclass(frozen=True, slots=True)
class BatchFailure:
    """A pull request whose pipeline raised inside a batch."""

    pull_request_number: int
    error: Exception


@dataclasses.dataclass(frozen=True, slots=True)
class BatchResult:
    """Tally of a batch run.

    Attributes
    ----------
    attempted
        Number of pull requests the batch visited.
    succeeded
        Number of pull requests whose pipeline completed without error.
    failures
        Per-item failures kept for diagnostics, in visiting order.

    """

    attempted: int = 0
    succeeded: int = 0
    failures: tuple[BatchFailure, ...] = ()

    def combine(self, other: BatchResult) -> BatchResult:
        """Return the tally of this batch followed by ``other``."""
        return BatchResult(
            attempted=self.attempted + other.attempted,
            succeeded=self.succeeded + other.succeeded,
            failures=self.failures + other.failures,
        )


class BatchReconciler:
    """Apply update and merge to pull requests."""

    def __init__(
        self,
        context: ReconcileContext,
        review_gate: ReviewGate,
        *,
        event_logger: ReconcileEventLogger | None = None,
    ) -> None:
        """Initialise with the invocation context and review gate."""
        self._context = context
        self._review_gate = review_gate
        self._events = event_logger or ReconcileEventLogger()

    async def run_pipeline(
        self,
        pull_request: PullRequest,
        step: ReconcileStep = ReconcileStep.UPDATE_AND_MERGE,
    ) -> None:
        """Run ``step`` on one pull request, letting failures propagate."""
        actions = self._context.actions
        if step.updates:
            await actions.update(self._context, pull_request)
        if step.merges:
            reviews = await self._review_gate.reviews_for(pull_request)
            await actions.merge(self._context, pull_request, reviews)

    async def reconcile_batch(
        self,
        pull_requests: cabc.Sequence[PullRequest],
        step: ReconcileStep,
        *,
        label: str,
    ) -> BatchResult:
        """Run ``step`` on each pull request sequentially, isolating failures.

        Parameters
        ----------
        pull_requests
            Pull requests in the order they must be visited.
        step
            Pipeline half to apply to each pull request.
        label
            Human-readable target (a branch or a column) used in logs.

        Returns
        -------
        BatchResult
            How many pull requests were visited and completed, plus the
            failures.

        """
        succeeded = 0
        failures: list[BatchFailure] = []
        for pull_request in pull_requests:
            failure = await self._attempt(pull_request, step, label=label)
            if failure is None:
                succeeded += 1
            else:
                failures.append(failure)

        result = BatchResult(
            attempted=len(pull_requests),
            succeeded=succeeded,
            failures=tuple(failures),
        )
        self._events.log_batch_completed(label, step, result)
        return result

    async def _attempt(
        self, pull_request: PullRequest, step: ReconcileStep, *, label: str
    ) -> BatchFailure | None:
        """Run one item of a batch and return its failure, if any."""
        try:
            await self.run_pipeline(pull_request, step)
        except Exception as exc:  # noqa: BLE001 - isolate each pull request
            self._events.log_item_failed(label, pull_request.number, exc)
            return BatchFailure(pull_request_number=pull_request.number, error=exc)
        return None
