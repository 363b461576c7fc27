"""Local invocation from a pull request or branch URL.

Operators can reconcile one pull request, or the dependents of one branch,
without waiting for GitHub to deliver an event:

- ``https://github.com/<owner>/<repo>/pull/<number>`` behaves like the pull
  request being opened.
- ``https://github.com/<owner>/<repo>/tree/<branch>`` behaves like a push to
  the branch. Branch names may contain ``/``.
"""

from __future__ import annotations

import dataclasses
import typing as typ
import urllib.parse

from drover.config import RepositoryIdentity
from drover.errors import InvalidTargetUrlError
from drover.logging import get_logger, log_debug
from drover.reconcile.events import Owner, PullRequestEvent, PushEvent, RepositoryRef

if typ.TYPE_CHECKING:
    from drover.github.client import PullRequestClient
    from drover.reconcile.outcome import ReconcileOutcome
    from drover.reconcile.router import EventRouter

logger = get_logger(__name__)

DEFAULT_WEB_HOST = "github.com"

# owner, repository, kind and ref
_PATH_SEGMENTS = 4


@dataclasses.dataclass(frozen=True, slots=True)
class PullTarget:
    """A pull request named by its web URL."""

    repository: RepositoryIdentity
    number: int


@dataclasses.dataclass(frozen=True, slots=True)
class BranchTarget:
    """A branch named by its web URL."""

    repository: RepositoryIdentity
    branch: str


LocalTarget: typ.TypeAlias = PullTarget | BranchTarget


def parse_target_url(url: str, *, host: str = DEFAULT_WEB_HOST) -> LocalTarget:
    """Parse ``https://<host>/<owner>/<repo>/(pull|tree)/<ref>``.

    Raises
    ------
    InvalidTargetUrlError
        If the URL does not follow the grammar, or a pull URL does not end in
        a number.

    Examples
    --------
    >>> parse_target_url("https://github.com/octo/reef/pull/7")
    PullTarget(repository=RepositoryIdentity(owner='octo', name='reef'), number=7)

    """
    if any(char.isspace() for char in url):
        raise InvalidTargetUrlError(url)
    parts = urllib.parse.urlsplit(url)
    if parts.scheme != "https" or parts.netloc != host or parts.query or parts.fragment:
        raise InvalidTargetUrlError(url)

    segments = parts.path.removeprefix("/").split("/", 3)
    if len(segments) != _PATH_SEGMENTS or not all(segments):
        raise InvalidTargetUrlError(url)

    owner, name, kind, ref = segments
    repository = RepositoryIdentity(owner=owner, name=name)
    if kind == "pull":
        if not ref.isdecimal():
            raise InvalidTargetUrlError(url)
        return PullTarget(repository=repository, number=int(ref))
    if kind == "tree":
        return BranchTarget(repository=repository, branch=ref)
    raise InvalidTargetUrlError(url)


def _repository_ref(repository: RepositoryIdentity) -> RepositoryRef:
    return RepositoryRef(
        name=repository.name,
        owner=Owner(login=repository.owner, name=repository.owner),
    )


async def execute_locally(
    router: EventRouter,
    client: PullRequestClient,
    url: str,
    *,
    host: str = DEFAULT_WEB_HOST,
) -> ReconcileOutcome:
    """Synthesize the event a URL stands for and dispatch it."""
    match parse_target_url(url, host=host):
        case PullTarget(repository=repository, number=number):
            log_debug(logger, "Getting PR data...")
            pull_request = await client.get_pull_request(
                repository.owner, repository.name, number
            )
            return await router.dispatch(
                PullRequestEvent(
                    action="opened",
                    pull_request=pull_request,
                    repository=_repository_ref(repository),
                )
            )
        case BranchTarget(repository=repository, branch=branch):
            return await router.dispatch(
                PushEvent(
                    ref=f"refs/heads/{branch}",
                    repository=_repository_ref(repository),
                )
            )
