"""Unit tests for the default update and merge collaborators."""

from __future__ import annotations

import pytest

from drover.github import GitHubPullRequestActions, approved_by_allow_list
from tests.helpers.github_fakes import (
    FakeGitHubClient,
    make_context,
    make_pull_request,
    make_review,
)


class TestApprovedByAllowList:
    """Tests for approved_by_allow_list."""

    def test_allow_listed_approval_counts(self) -> None:
        """An approval from an allow-listed reviewer is enough."""
        reviews = [make_review("mona", "APPROVED"), make_review("alice", "APPROVED")]
        assert approved_by_allow_list(reviews, ("alice",))

    def test_other_reviewers_do_not_count(self) -> None:
        """Approvals from reviewers outside the allow-list are ignored."""
        reviews = [make_review("mona", "APPROVED")]
        assert not approved_by_allow_list(reviews, ("alice",))

    def test_later_change_request_supersedes_approval(self) -> None:
        """The latest non-comment review of a reviewer wins."""
        reviews = [
            make_review("alice", "APPROVED"),
            make_review("alice", "COMMENTED"),
            make_review("alice", "CHANGES_REQUESTED"),
        ]
        assert not approved_by_allow_list(reviews, ("alice",))

    def test_comment_after_approval_keeps_approval(self) -> None:
        """Comments do not withdraw an approval."""
        reviews = [make_review("Alice", "APPROVED"), make_review("alice", "COMMENTED")]
        assert approved_by_allow_list(reviews, ("ALICE",))


@pytest.mark.asyncio
async def test_update_calls_update_branch_with_head_sha() -> None:
    """Open pull requests are updated against their known head."""
    client = FakeGitHubClient()
    context = make_context(client)

    await GitHubPullRequestActions().update(context, make_pull_request(7, sha="abc"))

    (call,) = client.calls_to("update_branch")
    assert call.args == ("octo", "reef", 7)
    assert call.kwargs == {"expected_head_sha": "abc"}


@pytest.mark.asyncio
async def test_update_skips_closed_pull_requests() -> None:
    """Closed pull requests are never updated."""
    client = FakeGitHubClient()

    await GitHubPullRequestActions().update(
        make_context(client), make_pull_request(7, state="closed")
    )

    assert client.calls == [], "closed pull requests need no remote call"


@pytest.mark.asyncio
async def test_merge_without_allow_list_merges() -> None:
    """Without an allow-list any open, non-draft pull request is merged."""
    client = FakeGitHubClient()

    await GitHubPullRequestActions().merge(
        make_context(client), make_pull_request(7, sha="abc"), []
    )

    (call,) = client.calls_to("merge_pull_request")
    assert call.kwargs == {"merge_method": "merge", "sha": "abc"}


@pytest.mark.asyncio
async def test_merge_skips_drafts() -> None:
    """Draft pull requests are not merged."""
    client = FakeGitHubClient()

    await GitHubPullRequestActions().merge(
        make_context(client), make_pull_request(7, draft=True), []
    )

    assert client.calls_to("merge_pull_request") == []


@pytest.mark.asyncio
async def test_merge_requires_allow_listed_approval() -> None:
    """With an allow-list, only approved pull requests are merged."""
    client = FakeGitHubClient()
    context = make_context(client, reviewers=("alice",))
    actions = GitHubPullRequestActions()

    await actions.merge(
        context, make_pull_request(7), [make_review("mona", "APPROVED")]
    )
    await actions.merge(
        context, make_pull_request(8), [make_review("alice", "APPROVED")]
    )

    merged = [call.args[2] for call in client.calls_to("merge_pull_request")]
    assert merged == [8], "only the allow-listed approval should merge"
