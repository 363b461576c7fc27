"""GitHub REST API client used by the reconciliation core."""

from __future__ import annotations

import dataclasses
import os
import typing as typ

import httpx
import msgspec

from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    UntrustedResourceURLError,
)
from .models import ProjectCard, PullRequest, Review

if typ.TYPE_CHECKING:
    from drover.config import MergeMethod

_DEFAULT_API_URL = "https://api.github.com"


class PullRequestClient(typ.Protocol):
    """Remote operations the reconciliation core depends on."""

    async def get_pull_request(self, owner: str, name: str, number: int) -> PullRequest:
        """Fetch a pull request by number."""
        ...

    async def get_pull_request_by_url(self, url: str) -> PullRequest:
        """Dereference a pull request resource URL."""
        ...

    async def list_pull_requests(
        self,
        owner: str,
        name: str,
        *,
        base: str | None = None,
        head: str | None = None,
        per_page: int,
    ) -> list[PullRequest]:
        """List open pull requests, most recently updated first."""
        ...

    async def list_reviews(self, owner: str, name: str, number: int) -> list[Review]:
        """List the reviews submitted on a pull request."""
        ...

    async def list_project_cards(self, column_id: int) -> list[ProjectCard]:
        """List the cards of a project board column."""
        ...

    async def update_branch(
        self,
        owner: str,
        name: str,
        number: int,
        *,
        expected_head_sha: str | None = None,
    ) -> None:
        """Merge the base branch into the pull request head."""
        ...

    async def merge_pull_request(
        self,
        owner: str,
        name: str,
        number: int,
        *,
        merge_method: MergeMethod,
        sha: str | None = None,
    ) -> None:
        """Merge a pull request."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubRestConfig:
    """Configuration for the GitHub REST API client."""

    token: str
    api_url: str = _DEFAULT_API_URL
    timeout_s: float = 20.0
    user_agent: str = "drover/0.1"

    @classmethod
    def from_env(cls) -> GitHubRestConfig:
        """Build configuration from ``DROVER_GITHUB_TOKEN`` or ``GITHUB_TOKEN``.

        ``GITHUB_API_URL`` overrides the API base, which GitHub Actions sets
        on Enterprise Server runners.
        """
        token = (
            os.environ.get("DROVER_GITHUB_TOKEN", "").strip()
            or os.environ.get("GITHUB_TOKEN", "").strip()
        )
        if not token:
            raise GitHubConfigError.missing_token()
        api_url = os.environ.get("GITHUB_API_URL", "").strip().rstrip("/")
        return cls(token=token, api_url=api_url or _DEFAULT_API_URL)


_HTTP_ERROR_STATUS_THRESHOLD = 400
_PROJECT_CARDS_PAGE_SIZE = 100
_PROJECTS_PREVIEW_MEDIA_TYPE = "application/vnd.github.inertia-preview+json"


def _is_under(url: httpx.URL, base: httpx.URL) -> bool:
    prefix = base.path.rstrip("/") + "/"
    return (
        url.scheme == base.scheme
        and url.host == base.host
        and url.port == base.port
        and url.path.startswith(prefix)
    )


def _error_detail(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str):
            return message
    return None


class GitHubRestClient:
    """GitHub REST implementation of :class:`PullRequestClient`."""

    def __init__(
        self,
        config: GitHubRestConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._api_base = httpx.URL(config.api_url)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)
        self._headers = {
            "Authorization": f"Bearer {config.token}",
            "User-Agent": config.user_agent,
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def get_pull_request(self, owner: str, name: str, number: int) -> PullRequest:
        """Fetch a pull request by number."""
        response = await self._request("GET", f"/repos/{owner}/{name}/pulls/{number}")
        return _decode(response, PullRequest, resource=f"pull request #{number}")

    async def get_pull_request_by_url(self, url: str) -> PullRequest:
        """Dereference a pull request resource URL such as a check run link.

        Only URLs under the configured API base are followed; others raise
        :class:`UntrustedResourceURLError` before any request is sent.
        """
        response = await self._request("GET", url)
        return _decode(response, PullRequest, resource=url)

    async def list_pull_requests(
        self,
        owner: str,
        name: str,
        *,
        base: str | None = None,
        head: str | None = None,
        per_page: int,
    ) -> list[PullRequest]:
        """List open pull requests sorted by last update, newest first."""
        params: dict[str, str | int] = {
            "state": "open",
            "sort": "updated",
            "direction": "desc",
            "per_page": per_page,
        }
        if base is not None:
            params["base"] = base
        if head is not None:
            params["head"] = head
        response = await self._request(
            "GET", f"/repos/{owner}/{name}/pulls", params=params
        )
        return _decode(response, list[PullRequest], resource="pull request list")

    async def list_reviews(self, owner: str, name: str, number: int) -> list[Review]:
        """List the reviews submitted on a pull request."""
        response = await self._request(
            "GET", f"/repos/{owner}/{name}/pulls/{number}/reviews"
        )
        return _decode(response, list[Review], resource=f"reviews of #{number}")

    async def list_project_cards(self, column_id: int) -> list[ProjectCard]:
        """List every card of a classic project board column.

        Pages are followed through the ``Link`` header until GitHub stops
        advertising a ``next`` page.
        """
        cards: list[ProjectCard] = []
        page: str | None = f"/projects/columns/{column_id}/cards"
        params: dict[str, str | int] | None = {"per_page": _PROJECT_CARDS_PAGE_SIZE}
        while page is not None:
            response = await self._request(
                "GET", page, params=params, accept=_PROJECTS_PREVIEW_MEDIA_TYPE
            )
            cards.extend(
                _decode(response, list[ProjectCard], resource=f"column {column_id}")
            )
            page = response.links.get("next", {}).get("url")
            # The next link already carries the query string.
            params = None
        return cards

    async def update_branch(
        self,
        owner: str,
        name: str,
        number: int,
        *,
        expected_head_sha: str | None = None,
    ) -> None:
        """Ask GitHub to merge the base branch into the pull request head."""
        body: dict[str, str] = {}
        if expected_head_sha is not None:
            body["expected_head_sha"] = expected_head_sha
        await self._request(
            "PUT", f"/repos/{owner}/{name}/pulls/{number}/update-branch", json=body
        )

    async def merge_pull_request(
        self,
        owner: str,
        name: str,
        number: int,
        *,
        merge_method: MergeMethod,
        sha: str | None = None,
    ) -> None:
        """Merge a pull request with the given method."""
        body: dict[str, str] = {"merge_method": merge_method}
        if sha is not None:
            body["sha"] = sha
        await self._request(
            "PUT", f"/repos/{owner}/{name}/pulls/{number}/merge", json=body
        )

    async def _request(
        self,
        method: str,
        path_or_url: str,
        *,
        params: dict[str, str | int] | None = None,
        json: dict[str, str] | None = None,
        accept: str | None = None,
    ) -> httpx.Response:
        """Send a request and raise for error responses.

        Absolute URLs are only followed when they sit under the configured
        API base, since every request carries the token.

        Raises
        ------
        UntrustedResourceURLError
            If ``path_or_url`` is an absolute URL on another origin or path.
        GitHubAPIError
            If GitHub answers with an error status.

        """
        if path_or_url.startswith(("http://", "https://")):
            if not _is_under(httpx.URL(path_or_url), self._api_base):
                raise UntrustedResourceURLError.foreign(
                    path_or_url, self._config.api_url
                )
            url = path_or_url
        else:
            url = f"{self._config.api_url}{path_or_url}"
        headers = dict(self._headers)
        if accept is not None:
            headers["Accept"] = accept
        response = await self._client.request(
            method, url, params=params, json=json, headers=headers
        )
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(
                method, path_or_url, response.status_code, _error_detail(response)
            )
        return response


T = typ.TypeVar("T")


def _decode(response: httpx.Response, kind: type[T], *, resource: str) -> T:
    """Decode a JSON response body into a typed record."""
    try:
        return msgspec.json.decode(response.content, type=kind)
    except msgspec.DecodeError as exc:
        raise GitHubResponseShapeError.undecodable(resource, str(exc)) from exc
