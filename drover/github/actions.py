"""Default update and merge collaborators backed by GitHub's REST endpoints.

GitHub performs the actual branch update and merge; these collaborators only
decide whether to ask. Merge eligibility is deliberately narrow: the pull
request must be open, not a draft and, when an approving-reviewer allow-list
is configured, approved by one of those reviewers.
"""

from __future__ import annotations

import typing as typ

from drover.logging import get_logger, log_debug, log_info

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from drover.reconcile.context import ReconcileContext

    from .models import PullRequest, Review

logger = get_logger(__name__)


def approved_by_allow_list(
    reviews: cabc.Sequence[Review], reviewers: cabc.Collection[str]
) -> bool:
    """Return True when an allow-listed reviewer's latest review approves.

    Reviews are expected in the order GitHub lists them (oldest first), so a
    later review by the same reviewer supersedes an earlier approval.
    """
    allowed = {login.lower() for login in reviewers}
    latest: dict[str, Review] = {}
    for review in reviews:
        if review.user is None:
            continue
        login = review.user.login.lower()
        if login in allowed and review.state.lower() != "commented":
            latest[login] = review
    return any(review.is_approval for review in latest.values())


class GitHubPullRequestActions:
    """Update and merge pull requests through the GitHub REST API."""

    async def update(
        self, context: ReconcileContext, pull_request: PullRequest
    ) -> None:
        """Merge the base branch into the head of an open pull request."""
        if not pull_request.is_open:
            log_info(logger, "PR #%d is not open, skipping update", pull_request.number)
            return

        repository = context.repository_for(pull_request)
        log_debug(
            logger,
            "Updating PR #%d with %s",
            pull_request.number,
            pull_request.base.ref,
        )
        await context.client.update_branch(
            repository.owner,
            repository.name,
            pull_request.number,
            expected_head_sha=pull_request.head.sha,
        )
        log_info(logger, "PR #%d updated", pull_request.number)

    async def merge(
        self,
        context: ReconcileContext,
        pull_request: PullRequest,
        reviews: cabc.Sequence[Review],
    ) -> None:
        """Merge ``pull_request`` when it is eligible; skip it otherwise."""
        if not pull_request.is_open:
            log_info(logger, "PR #%d is not open, skipping merge", pull_request.number)
            return
        if pull_request.draft:
            log_info(logger, "PR #%d is a draft, skipping merge", pull_request.number)
            return

        reviewers = context.config.merge_approved_by_reviewers
        if reviewers and not approved_by_allow_list(reviews, reviewers):
            log_info(
                logger,
                "PR #%d is not approved by any of %s, skipping merge",
                pull_request.number,
                ", ".join(reviewers),
            )
            return

        repository = context.repository_for(pull_request)
        await context.client.merge_pull_request(
            repository.owner,
            repository.name,
            pull_request.number,
            merge_method=context.config.merge_method,
            sha=pull_request.head.sha,
        )
        log_info(logger, "PR #%d merged", pull_request.number)
