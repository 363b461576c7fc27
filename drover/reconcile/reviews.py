"""Conditional review retrieval."""

from __future__ import annotations

import typing as typ

from .context import owning_repository

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from drover.config import RepositoryIdentity
    from drover.github.client import PullRequestClient
    from drover.github.models import PullRequest, Review


class ReviewGate:
    """Fetch reviews only when an approving-reviewer allow-list is configured."""

    def __init__(
        self,
        client: PullRequestClient,
        repository: RepositoryIdentity,
        reviewers: cabc.Sequence[str],
    ) -> None:
        """Initialise with the API client, default repository and allow-list."""
        self._client = client
        self._repository = repository
        self._reviewers = tuple(reviewers)

    async def reviews_for(self, pull_request: PullRequest) -> list[Review]:
        """Return the reviews of ``pull_request`` in the order GitHub lists them."""
        if not self._reviewers:
            # Approvals are irrelevant to merging without an allow-list.
            return []

        repository = owning_repository(pull_request, self._repository)
        return await self._client.list_reviews(
            repository.owner, repository.name, pull_request.number
        )
