"""Unit tests for the GitHub REST client."""

from __future__ import annotations

import json
import secrets
import typing as typ

import httpx
import pytest

from drover.github import GitHubRestClient, GitHubRestConfig
from drover.github.errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    UntrustedResourceURLError,
)

_TOKEN = secrets.token_hex(8)
_API_URL = "https://api.example.test"


def _pr_json(number: int) -> dict[str, typ.Any]:
    return {
        "number": number,
        "state": "open",
        "draft": False,
        "base": {"ref": "main"},
        "head": {"ref": "feature", "sha": f"sha-{number}"},
        "node_id": "ignored",
    }


def _make_client(
    responses: list[tuple[int, typ.Any]],
    *,
    headers: list[dict[str, str]] | None = None,
    api_url: str = _API_URL,
) -> tuple[GitHubRestClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        index = len(requests) - 1
        status, payload = responses[index]
        extra = headers[index] if headers else None
        return httpx.Response(status_code=status, json=payload, headers=extra)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    client = GitHubRestClient(
        GitHubRestConfig(token=_TOKEN, api_url=api_url),
        http_client=http_client,
    )
    return client, requests


class TestGitHubRestConfig:
    """Tests for GitHubRestConfig.from_env."""

    def test_prefers_drover_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """DROVER_GITHUB_TOKEN takes precedence over GITHUB_TOKEN."""
        monkeypatch.setenv("DROVER_GITHUB_TOKEN", "drover-token")
        monkeypatch.setenv("GITHUB_TOKEN", "actions-token")
        monkeypatch.delenv("GITHUB_API_URL", raising=False)

        config = GitHubRestConfig.from_env()

        assert config.token == "drover-token"
        assert config.api_url == "https://api.github.com"

    def test_falls_back_to_github_token_and_api_url(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """GITHUB_TOKEN and GITHUB_API_URL are honoured as in Actions."""
        monkeypatch.delenv("DROVER_GITHUB_TOKEN", raising=False)
        monkeypatch.setenv("GITHUB_TOKEN", "actions-token")
        monkeypatch.setenv("GITHUB_API_URL", "https://ghe.example.test/api/v3/")

        config = GitHubRestConfig.from_env()

        assert config.token == "actions-token"
        assert config.api_url == "https://ghe.example.test/api/v3"

    def test_missing_token_is_configuration_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Without any token the client cannot be configured."""
        monkeypatch.delenv("DROVER_GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)

        with pytest.raises(GitHubConfigError):
            GitHubRestConfig.from_env()


def test_empty_token_is_rejected() -> None:
    """The client refuses a blank token."""
    with pytest.raises(GitHubConfigError):
        GitHubRestClient(GitHubRestConfig(token="  "))


@pytest.mark.asyncio
async def test_get_pull_request_sends_auth_and_decodes() -> None:
    """Fetching a pull request hits the pulls endpoint with REST headers."""
    client, requests = _make_client([(200, _pr_json(7))])

    pull_request = await client.get_pull_request("octo", "reef", 7)

    assert pull_request.number == 7
    assert pull_request.head.sha == "sha-7"
    request = requests[0]
    assert str(request.url) == f"{_API_URL}/repos/octo/reef/pulls/7"
    assert request.headers["Authorization"] == f"Bearer {_TOKEN}"
    assert request.headers["Accept"] == "application/vnd.github+json"


@pytest.mark.asyncio
async def test_get_pull_request_by_url_uses_absolute_url() -> None:
    """Resource URLs from payloads are requested as-is."""
    client, requests = _make_client([(200, _pr_json(9))])
    url = f"{_API_URL}/repos/octo/reef/pulls/9"

    pull_request = await client.get_pull_request_by_url(url)

    assert pull_request.number == 9
    assert str(requests[0].url) == url


@pytest.mark.asyncio
async def test_list_pull_requests_filters_open_newest_first() -> None:
    """Listing asks for open pull requests sorted by last update."""
    client, requests = _make_client([(200, [_pr_json(3), _pr_json(2)])])

    pull_requests = await client.list_pull_requests(
        "octo", "reef", head="octo:feature", per_page=10
    )

    assert [pr.number for pr in pull_requests] == [3, 2]
    params = requests[0].url.params
    assert params["state"] == "open"
    assert params["sort"] == "updated"
    assert params["direction"] == "desc"
    assert params["head"] == "octo:feature"
    assert params["per_page"] == "10"
    assert "base" not in params, "unset filters must not be sent"


@pytest.mark.asyncio
async def test_list_project_cards_uses_projects_preview() -> None:
    """Project cards are requested with the projects preview media type."""
    client, requests = _make_client(
        [(200, [{"id": 1, "content_url": None, "note": "todo"}])]
    )

    cards = await client.list_project_cards(55)

    assert cards[0].note == "todo"
    assert requests[0].url.path == "/projects/columns/55/cards"
    assert requests[0].headers["Accept"] == (
        "application/vnd.github.inertia-preview+json"
    )


@pytest.mark.asyncio
async def test_list_project_cards_follows_next_links() -> None:
    """Columns larger than one page are read through the Link header."""
    next_page = f"{_API_URL}/projects/columns/55/cards?per_page=100&page=2"
    client, requests = _make_client(
        [(200, [{"id": 1}, {"id": 2}]), (200, [{"id": 3}])],
        headers=[{"Link": f'<{next_page}>; rel="next", <{next_page}>; rel="last"'}, {}],
    )

    cards = await client.list_project_cards(55)

    assert [card.id for card in cards] == [1, 2, 3]
    assert str(requests[1].url) == next_page, "next link must be used verbatim"
    assert requests[1].headers["Accept"] == (
        "application/vnd.github.inertia-preview+json"
    )


@pytest.mark.asyncio
async def test_update_branch_sends_expected_head_sha() -> None:
    """Branch updates pin the head commit they were computed against."""
    client, requests = _make_client(
        [(202, {"message": "Updating pull request branch."})]
    )

    await client.update_branch("octo", "reef", 7, expected_head_sha="abc")

    request = requests[0]
    assert request.method == "PUT"
    assert request.url.path == "/repos/octo/reef/pulls/7/update-branch"
    assert json.loads(request.content) == {"expected_head_sha": "abc"}


@pytest.mark.asyncio
async def test_merge_pull_request_sends_method_and_sha() -> None:
    """Merges carry the configured method and the expected head sha."""
    client, requests = _make_client([(200, {"merged": True})])

    await client.merge_pull_request("octo", "reef", 7, merge_method="squash", sha="abc")

    assert requests[0].url.path == "/repos/octo/reef/pulls/7/merge"
    assert json.loads(requests[0].content) == {"merge_method": "squash", "sha": "abc"}


@pytest.mark.asyncio
async def test_error_status_raises_with_message() -> None:
    """HTTP errors surface the status code and GitHub's message."""
    client, _ = _make_client([(404, {"message": "Not Found"})])

    with pytest.raises(GitHubAPIError, match="Not Found") as excinfo:
        await client.get_pull_request("octo", "reef", 404)

    assert excinfo.value.status_code == 404
    assert excinfo.value.method == "GET"
    assert excinfo.value.path == "/repos/octo/reef/pulls/404"
    assert not excinfo.value.server_error, "404 is not a server error"


@pytest.mark.asyncio
async def test_unexpected_shape_raises_shape_error() -> None:
    """Bodies that do not decode into the record are schema drift."""
    client, _ = _make_client([(200, {"number": "seven"})])

    with pytest.raises(GitHubResponseShapeError, match="pull request #7"):
        await client.get_pull_request("octo", "reef", 7)


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open() -> None:
    """Injected HTTP clients are owned by the caller."""
    client, _ = _make_client([])

    await client.aclose()

    assert client._client.is_closed is False  # noqa: SLF001 - ownership check


@pytest.mark.parametrize(
    "url",
    [
        "https://evil.example/repos/octo/reef/pulls/1",
        "http://api.example.test/repos/octo/reef/pulls/1",
        "https://api.example.test:8443/repos/octo/reef/pulls/1",
        "https://api.example.test.evil.example/repos/octo/reef/pulls/1",
        "https://token@evil.example/repos/octo/reef/pulls/1",
    ],
)
@pytest.mark.asyncio
async def test_foreign_resource_url_is_never_requested(url: str) -> None:
    """URLs outside the API base are refused before the token is sent."""
    client, requests = _make_client([(200, _pr_json(1))])

    with pytest.raises(UntrustedResourceURLError, match="refusing to request"):
        await client.get_pull_request_by_url(url)

    assert requests == [], "no request may leave the client"


@pytest.mark.asyncio
async def test_resource_url_must_stay_under_api_path() -> None:
    """Enterprise API bases with a path only accept URLs beneath that path."""
    api_url = "https://ghe.example.test/api/v3"
    client, requests = _make_client([(200, _pr_json(2))], api_url=api_url)

    with pytest.raises(UntrustedResourceURLError):
        await client.get_pull_request_by_url("https://ghe.example.test/login")
    pull_request = await client.get_pull_request_by_url(
        f"{api_url}/repos/octo/reef/pulls/2"
    )

    assert pull_request.number == 2
    assert len(requests) == 1
