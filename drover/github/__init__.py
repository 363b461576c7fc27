"""GitHub REST client, records and default pull request collaborators."""

from __future__ import annotations

from .actions import GitHubPullRequestActions, approved_by_allow_list
from .client import GitHubRestClient, GitHubRestConfig, PullRequestClient
from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    UntrustedResourceURLError,
)
from .models import (
    BranchRef,
    Label,
    ProjectCard,
    PullRequest,
    RepositorySummary,
    Review,
    User,
)

__all__ = [
    "BranchRef",
    "GitHubAPIError",
    "GitHubConfigError",
    "GitHubPullRequestActions",
    "GitHubResponseShapeError",
    "GitHubRestClient",
    "GitHubRestConfig",
    "Label",
    "ProjectCard",
    "PullRequest",
    "PullRequestClient",
    "RepositorySummary",
    "Review",
    "UntrustedResourceURLError",
    "User",
    "approved_by_allow_list",
]
