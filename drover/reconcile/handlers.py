"""Reconciliation handlers, one per routed event kind.

Handlers decide from an event which pull requests need attention and how
much of the update and merge pipeline to run on them:

- ``pull_request``, ``pull_request_review`` and ``issue_comment`` run the full
  pipeline on a single pull request and let failures propagate.
- ``push`` updates the pull requests based on the pushed branch.
- ``status`` and completed ``check_suite``/``check_run`` events update and
  merge the pull requests whose head is the affected branch.
- ``schedule`` merges the pull requests sitting in the configured project
  board column.
"""

from __future__ import annotations

import typing as typ

from drover.errors import MissingProjectColumnError
from drover.logging import get_logger, log_info

from .batch import BatchReconciler, BatchResult, ReconcileStep
from .cards import filter_project_cards
from .fetcher import PullRequestFetcher, attach_repository
from .observability import ReconcileEventLogger
from .outcome import ReconcileOutcome, SkipReason
from .reviews import ReviewGate

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from drover.config import RepositoryIdentity
    from drover.github.models import PullRequest

    from .context import ReconcileContext
    from .events import (
        CheckEvent,
        EventKind,
        IssueCommentEvent,
        PullRequestEvent,
        PullRequestReviewEvent,
        PushEvent,
        ScheduleEvent,
        StatusEvent,
    )

logger = get_logger(__name__)

RELEVANT_PULL_REQUEST_ACTIONS = frozenset(
    {
        "labeled",
        "unlabeled",
        "synchronize",
        "opened",
        "edited",
        "ready_for_review",
        "reopened",
        "unlocked",
    }
)

BRANCH_REF_PREFIX = "refs/heads/"


class ReconciliationHandlers:
    """Handlers that turn one event into pull request work."""

    def __init__(
        self,
        context: ReconcileContext,
        *,
        event_logger: ReconcileEventLogger | None = None,
    ) -> None:
        """Initialise the handlers and their discovery and batch helpers."""
        self._context = context
        self._events = event_logger or ReconcileEventLogger()
        self._fetcher = PullRequestFetcher(context.client, context.repository)
        review_gate = ReviewGate(
            context.client,
            context.repository,
            context.config.merge_approved_by_reviewers,
        )
        self._batch = BatchReconciler(
            context, review_gate, event_logger=self._events
        )

    async def on_pull_request(self, event: PullRequestEvent) -> ReconcileOutcome:
        """Reconcile a pull request whose relevant attributes changed."""
        if event.action not in RELEVANT_PULL_REQUEST_ACTIONS:
            return self._ignore(event.kind, SkipReason.IGNORED_ACTION, event.action)

        return await self._reconcile_single(event.kind, self._owned(event))

    async def on_pull_request_review(
        self, event: PullRequestReviewEvent
    ) -> ReconcileOutcome:
        """Reconcile a pull request that has just been approved."""
        if event.action != "submitted":
            return self._ignore(event.kind, SkipReason.IGNORED_ACTION, event.action)
        if event.review.state.lower() != "approved":
            return self._ignore(
                event.kind, SkipReason.REVIEW_NOT_APPROVED, event.review.state
            )

        return await self._reconcile_single(event.kind, self._owned(event))

    async def on_issue_comment(self, event: IssueCommentEvent) -> ReconcileOutcome:
        """Reconcile the pull request a new comment was posted on."""
        if event.action != "created":
            return self._ignore(event.kind, SkipReason.IGNORED_ACTION, event.action)
        if not event.issue.is_pull_request:
            return self._ignore(
                event.kind, SkipReason.NOT_A_PULL_REQUEST, event.issue.number
            )

        # The comment payload only references the pull request.
        pull_request = await self._fetcher.fetch(
            event.issue.number, repository=event.repository.identity
        )
        return await self._reconcile_single(event.kind, pull_request)

    async def on_push(self, event: PushEvent) -> ReconcileOutcome:
        """Update the pull requests based on a pushed branch.

        Dependents are only refreshed; a push never merges them.
        """
        if not event.ref.startswith(BRANCH_REF_PREFIX):
            return self._ignore(event.kind, SkipReason.NOT_A_BRANCH, event.ref)

        branch = event.ref.removeprefix(BRANCH_REF_PREFIX)
        pull_requests = await self._fetcher.open_for_base(
            event.repository.identity, branch
        )
        if not pull_requests:
            return self._nothing_to_do(event.kind, SkipReason.NO_PULL_REQUESTS, branch)

        log_info(logger, "Open PRs based on %s: %d", branch, len(pull_requests))
        batch = await self._batch.reconcile_batch(
            pull_requests, ReconcileStep.UPDATE, label=branch
        )
        if batch.succeeded:
            log_info(
                logger, "%d PRs based on %s have been updated", batch.succeeded, branch
            )
        else:
            log_info(logger, "No PRs based on %s have been updated", branch)
        return ReconcileOutcome.from_batch(event.kind, batch)

    async def on_status(self, event: StatusEvent) -> ReconcileOutcome:
        """Update and merge the pull requests of branches whose status passed."""
        if event.state != "success":
            return self._ignore(event.kind, SkipReason.IGNORED_STATE, event.state)
        if not event.branches:
            return self._ignore(event.kind, SkipReason.EMPTY_BRANCH_LIST)

        return await self._reconcile_heads(
            event.kind,
            event.repository.identity,
            [branch.name for branch in event.branches],
        )

    async def on_check(self, event: CheckEvent) -> ReconcileOutcome:
        """Reconcile after a check suite or check run completed successfully."""
        if event.action != "completed":
            return self._ignore(event.kind, SkipReason.CHECK_INCOMPLETE, event.action)

        check = event.check
        if check.conclusion != "success":
            return self._ignore(
                event.kind, SkipReason.CHECK_UNSUCCESSFUL, check.conclusion
            )

        log_info(logger, "Status check completed successfully: %s", event.kind)
        if check.pull_requests:
            pull_request = await self._fetcher.dereference(
                check.pull_requests[0].url,
                repository=(
                    event.repository.identity if event.repository is not None else None
                ),
            )
            return await self._reconcile_single(event.kind, pull_request)

        if check.head_branch is not None:
            repository = (
                event.repository.identity
                if event.repository is not None
                else self._context.repository
            )
            return await self._reconcile_heads(
                event.kind, repository, [check.head_branch]
            )

        return self._ignore(event.kind, SkipReason.NO_CHECK_TARGET)

    async def on_schedule(self, event: ScheduleEvent) -> ReconcileOutcome:
        """Attempt to merge the pull requests in the configured board column.

        Pull requests in the column are assumed to be up to date already, so
        only the eligibility-gated merge runs.

        Raises
        ------
        MissingProjectColumnError
            If no project column is configured. No remote call is made.
        MalformedCardReferenceError
            If a card's content URL has an unexpected shape.

        """
        column_id = self._context.config.project_column_id
        if column_id is None:
            raise MissingProjectColumnError

        log_info(logger, "Listing issues in column %d ...", column_id)
        cards = await self._context.client.list_project_cards(column_id)
        if not cards:
            return self._nothing_to_do(event.kind, SkipReason.EMPTY_COLUMN, column_id)

        numbers = filter_project_cards(
            cards, self._context.repository.name, event_logger=self._events
        )
        if not numbers:
            return self._nothing_to_do(
                event.kind, SkipReason.NO_PULL_REQUESTS, column_id
            )

        pull_requests = [await self._fetcher.fetch(number) for number in numbers]
        batch = await self._batch.reconcile_batch(
            pull_requests, ReconcileStep.MERGE, label=f"column {column_id}"
        )
        return ReconcileOutcome.from_batch(event.kind, batch)

    async def _reconcile_heads(
        self,
        kind: EventKind,
        repository: RepositoryIdentity,
        branches: cabc.Sequence[str],
    ) -> ReconcileOutcome:
        """Update and merge the open pull requests whose head is in ``branches``."""
        total = BatchResult()
        for branch in branches:
            pull_requests = await self._fetcher.open_for_head(repository, branch)
            batch = await self._batch.reconcile_batch(
                pull_requests, ReconcileStep.UPDATE_AND_MERGE, label=branch
            )
            total = total.combine(batch)

        if total.succeeded == 0:
            log_info(logger, "No PRs have been updated/merged")
        return ReconcileOutcome.from_batch(kind, total)

    async def _reconcile_single(
        self, kind: EventKind, pull_request: PullRequest
    ) -> ReconcileOutcome:
        """Run the full pipeline on one pull request; failures propagate."""
        await self._batch.run_pipeline(pull_request)
        self._events.log_pull_request_reconciled(kind, pull_request.number)
        return ReconcileOutcome.reconciled_single(kind, pull_request.number)

    def _owned(self, event: PullRequestEvent | PullRequestReviewEvent) -> PullRequest:
        """Return the event's pull request with its repository recorded."""
        repository = (
            event.repository.identity
            if event.repository is not None
            else self._context.repository
        )
        return attach_repository(event.pull_request, repository)

    def _ignore(
        self, kind: EventKind, reason: SkipReason, detail: object = None
    ) -> ReconcileOutcome:
        self._events.log_event_ignored(kind, reason, detail)
        return ReconcileOutcome.ignored(kind, reason)

    def _nothing_to_do(
        self, kind: EventKind, reason: SkipReason, detail: object = None
    ) -> ReconcileOutcome:
        self._events.log_event_ignored(kind, reason, detail)
        return ReconcileOutcome.nothing_to_do(kind, reason)
