"""Unit tests for environment wiring."""

from __future__ import annotations

import pytest

from drover.config import DroverConfig, RepositoryIdentity
from drover.errors import InvalidRepositoryIdentityError
from drover.factory import build_context, open_router_from_env
from drover.github import GitHubPullRequestActions, GitHubRestClient
from drover.reconcile import EventRouter
from tests.helpers.github_fakes import FakeGitHubClient


def test_build_context_reads_missing_parts_from_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Unspecified collaborators default to the environment and REST actions."""
    monkeypatch.setenv("GITHUB_REPOSITORY", "octo/reef")
    monkeypatch.setenv("DROVER_PROJECT_COLUMN_ID", "12")
    client = FakeGitHubClient()

    context = build_context(client)

    assert context.client is client
    assert isinstance(context.actions, GitHubPullRequestActions)
    assert context.repository == RepositoryIdentity(owner="octo", name="reef")
    assert context.config.project_column_id == 12


def test_build_context_prefers_explicit_parts(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Explicit configuration skips the environment entirely."""
    monkeypatch.delenv("GITHUB_REPOSITORY", raising=False)
    repository = RepositoryIdentity(owner="a", name="b")

    context = build_context(
        FakeGitHubClient(), config=DroverConfig(), repository=repository
    )

    assert context.repository is repository


@pytest.mark.asyncio
async def test_open_router_from_env_yields_router_and_client(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """The environment yields a router backed by the REST client."""
    monkeypatch.setenv("GITHUB_REPOSITORY", "octo/reef")
    monkeypatch.setenv("GITHUB_TOKEN", "token")

    async with open_router_from_env() as (router, client):
        assert isinstance(router, EventRouter)
        assert isinstance(client, GitHubRestClient)


@pytest.mark.asyncio
async def test_open_router_from_env_rejects_bad_repository(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Configuration errors surface before a client is opened."""
    monkeypatch.setenv("GITHUB_REPOSITORY", "not-a-slug")

    with pytest.raises(InvalidRepositoryIdentityError):
        async with open_router_from_env():
            pass
