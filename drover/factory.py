"""Wiring helpers that assemble a router from the environment."""

from __future__ import annotations

import contextlib
import typing as typ

from drover.config import DroverConfig, RepositoryIdentity
from drover.github import GitHubPullRequestActions, GitHubRestClient, GitHubRestConfig
from drover.reconcile import EventRouter, ReconcileContext

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from drover.github import PullRequestClient
    from drover.reconcile import PullRequestActions


def build_context(
    client: PullRequestClient,
    *,
    config: DroverConfig | None = None,
    repository: RepositoryIdentity | None = None,
    actions: PullRequestActions | None = None,
) -> ReconcileContext:
    """Build a reconciliation context, reading missing parts from the environment.

    Raises
    ------
    ConfigurationError
        If the repository identity or Drover settings cannot be parsed.

    """
    return ReconcileContext(
        client=client,
        actions=actions or GitHubPullRequestActions(),
        config=config or DroverConfig.from_env(),
        repository=repository or RepositoryIdentity.from_env(),
    )


@contextlib.asynccontextmanager
async def open_router_from_env() -> cabc.AsyncIterator[
    tuple[EventRouter, GitHubRestClient]
]:
    """Yield a router and its REST client configured from the environment.

    The client is closed when the context exits.
    """
    # Resolve configuration before opening any connection.
    config = DroverConfig.from_env()
    repository = RepositoryIdentity.from_env()
    client = GitHubRestClient(GitHubRestConfig.from_env())
    try:
        context = build_context(client, config=config, repository=repository)
        yield EventRouter.for_context(context), client
    finally:
        await client.aclose()
