"""Unit tests for conditional review retrieval."""

from __future__ import annotations

import pytest

from drover.reconcile.reviews import ReviewGate
from tests.helpers.github_fakes import (
    REPOSITORY,
    FakeGitHubClient,
    make_pull_request,
    make_review,
)


@pytest.mark.asyncio
async def test_no_allow_list_makes_no_remote_call() -> None:
    """Without an allow-list reviews are never fetched."""
    client = FakeGitHubClient(reviews={7: [make_review("alice", "APPROVED")]})

    reviews = await ReviewGate(client, REPOSITORY, ()).reviews_for(
        make_pull_request(7)
    )

    assert reviews == []
    assert client.calls == [], "no review lookup expected"


@pytest.mark.asyncio
async def test_allow_list_fetches_reviews_in_order() -> None:
    """With an allow-list the reviews are fetched as GitHub lists them."""
    listed = [make_review("alice", "COMMENTED"), make_review("alice", "APPROVED")]
    client = FakeGitHubClient(reviews={7: listed})

    reviews = await ReviewGate(client, REPOSITORY, ("alice",)).reviews_for(
        make_pull_request(7)
    )

    assert reviews == listed
    assert client.calls_to("list_reviews")[0].args == ("octo", "reef", 7)
