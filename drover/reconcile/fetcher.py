"""Pull request discovery for reconciliation handlers.

Every record the fetcher returns names the repository it was found in on
``base.repo``, so update and merge act where discovery looked, whatever
repository the invocation was configured for.
"""

from __future__ import annotations

import typing as typ

import msgspec

from drover.github.models import RepositorySummary
from drover.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    from drover.config import RepositoryIdentity
    from drover.github.client import PullRequestClient
    from drover.github.models import PullRequest

logger = get_logger(__name__)

# Only a handful of pull requests are reconciled per branch and event.
MAX_PULL_REQUESTS = 10


def attach_repository(
    pull_request: PullRequest, repository: RepositoryIdentity
) -> PullRequest:
    """Return ``pull_request`` with ``base.repo`` set, unless GitHub set it."""
    if pull_request.base.repo is not None:
        return pull_request
    base = msgspec.structs.replace(
        pull_request.base, repo=RepositorySummary(full_name=repository.slug)
    )
    return msgspec.structs.replace(pull_request, base=base)


class PullRequestFetcher:
    """Resolve numbers, URLs and branches into full pull request records."""

    def __init__(
        self, client: PullRequestClient, repository: RepositoryIdentity
    ) -> None:
        """Initialise with the API client and the invocation's repository."""
        self._client = client
        self._repository = repository

    async def fetch(
        self, number: int, *, repository: RepositoryIdentity | None = None
    ) -> PullRequest:
        """Fetch a pull request by number.

        ``repository`` defaults to the invocation's repository; handlers pass
        the repository named by the event when it carries one.
        """
        target = repository or self._repository
        log_debug(logger, "Getting pull request info for %s#%d", target.slug, number)
        pull_request = await self._client.get_pull_request(
            target.owner, target.name, number
        )
        return attach_repository(pull_request, target)

    async def dereference(
        self, url: str, *, repository: RepositoryIdentity | None = None
    ) -> PullRequest:
        """Fetch the pull request a resource URL points at.

        ``repository`` is recorded on the result when GitHub's record does not
        name one.
        """
        log_debug(logger, "Getting pull request from %s", url)
        pull_request = await self._client.get_pull_request_by_url(url)
        return attach_repository(pull_request, repository or self._repository)

    async def open_for_base(
        self, repository: RepositoryIdentity, branch: str
    ) -> list[PullRequest]:
        """List open pull requests targeting ``branch``, newest-updated first."""
        log_debug(logger, "Listing pull requests based on %s ...", branch)
        pull_requests = await self._client.list_pull_requests(
            repository.owner,
            repository.name,
            base=branch,
            per_page=MAX_PULL_REQUESTS,
        )
        return [
            attach_repository(pull_request, repository)
            for pull_request in pull_requests[:MAX_PULL_REQUESTS]
        ]

    async def open_for_head(
        self, repository: RepositoryIdentity, branch: str
    ) -> list[PullRequest]:
        """List open pull requests from ``owner:branch``, newest-updated first."""
        log_debug(logger, "Listing pull requests for %s ...", branch)
        pull_requests = await self._client.list_pull_requests(
            repository.owner,
            repository.name,
            head=f"{repository.owner}:{branch}",
            per_page=MAX_PULL_REQUESTS,
        )
        return [
            attach_repository(pull_request, repository)
            for pull_request in pull_requests[:MAX_PULL_REQUESTS]
        ]
