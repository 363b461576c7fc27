"""Typed records for the GitHub resources Drover reads.

Only the fields the reconciliation core and the default collaborators consult
are declared; msgspec ignores everything else in a payload.
"""

from __future__ import annotations

import msgspec


class User(msgspec.Struct, kw_only=True):
    """GitHub account reference."""

    login: str


class Label(msgspec.Struct, kw_only=True):
    """Issue or pull request label."""

    name: str


class RepositorySummary(msgspec.Struct, kw_only=True):
    """Repository a branch lives in."""

    full_name: str


class BranchRef(msgspec.Struct, kw_only=True):
    """Base or head side of a pull request.

    Attributes
    ----------
    ref : str
        Branch name without the ``refs/heads/`` prefix.
    sha : str, optional
        Commit the branch pointed at when the record was fetched.
    label : str, optional
        ``owner:branch`` form used by head filters.
    repo : RepositorySummary, optional
        Repository the branch lives in. On the base side this is the
        repository that owns the pull request.

    """

    ref: str
    sha: str | None = None
    label: str | None = None
    repo: RepositorySummary | None = None


class PullRequest(msgspec.Struct, kw_only=True):
    """Pull request record as returned by the REST API and webhooks.

    Status fields are owned by GitHub; Drover only reads them and forwards the
    record to its collaborators.
    """

    number: int
    base: BranchRef
    head: BranchRef
    state: str = "open"
    title: str = ""
    draft: bool = False
    labels: list[Label] = msgspec.field(default_factory=list)
    mergeable_state: str | None = None
    updated_at: str | None = None
    url: str | None = None
    user: User | None = None

    @property
    def is_open(self) -> bool:
        """Return True when GitHub reports the pull request as open."""
        return self.state.lower() == "open"


class Review(msgspec.Struct, kw_only=True):
    """Review submitted on a pull request."""

    state: str
    id: int | None = None
    user: User | None = None

    @property
    def is_approval(self) -> bool:
        """Return True for approvals, whatever case GitHub used."""
        return self.state.lower() == "approved"


class ProjectCard(msgspec.Struct, kw_only=True):
    """Card in a classic project board column.

    ``content_url`` points at the issue or pull request the card tracks and is
    missing for note-only cards.
    """

    id: int | None = None
    content_url: str | None = None
    note: str | None = None
