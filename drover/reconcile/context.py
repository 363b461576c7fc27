"""Shared state for one reconciliation invocation."""

from __future__ import annotations

import dataclasses
import typing as typ

from drover.config import RepositoryIdentity
from drover.errors import InvalidRepositoryIdentityError
from drover.github.errors import GitHubResponseShapeError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from drover.config import DroverConfig
    from drover.github.client import PullRequestClient
    from drover.github.models import PullRequest, Review


def owning_repository(
    pull_request: PullRequest, default: RepositoryIdentity
) -> RepositoryIdentity:
    """Return the repository ``pull_request`` belongs to.

    Records name it on ``base.repo``; records without one fall back to
    ``default``.

    Raises
    ------
    GitHubResponseShapeError
        If ``base.repo.full_name`` is not ``owner/name``.

    """
    summary = pull_request.base.repo
    if summary is None:
        return default
    try:
        return RepositoryIdentity.parse(summary.full_name)
    except InvalidRepositoryIdentityError as exc:
        raise GitHubResponseShapeError.undecodable(
            f"pull request #{pull_request.number}",
            f"base.repo.full_name is {summary.full_name!r}",
        ) from exc


class PullRequestActions(typ.Protocol):
    """The update and merge operations applied to each pull request.

    Both operations must be idempotent: Drover may call them repeatedly for
    the same pull request as events arrive.
    """

    async def update(
        self, context: ReconcileContext, pull_request: PullRequest
    ) -> None:
        """Bring ``pull_request`` up to date with its base branch."""
        ...

    async def merge(
        self,
        context: ReconcileContext,
        pull_request: PullRequest,
        reviews: cabc.Sequence[Review],
    ) -> None:
        """Merge ``pull_request`` when it is eligible."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class ReconcileContext:
    """Collaborators and configuration for one invocation.

    Attributes
    ----------
    client
        Remote GitHub API client.
    actions
        Update and merge collaborators.
    config
        Read-only configuration for the invocation.
    repository
        Repository identity taken from the environment. Pull requests that
        do not name their own repository are acted on here.

    """

    client: PullRequestClient
    actions: PullRequestActions
    config: DroverConfig
    repository: RepositoryIdentity

    def repository_for(self, pull_request: PullRequest) -> RepositoryIdentity:
        """Return the repository update and merge calls must target."""
        return owning_repository(pull_request, self.repository)
