"""GitHub REST client errors."""

from __future__ import annotations

from drover.errors import ClientInputError, ConfigurationError

_HTTP_SERVER_ERROR = 500


class GitHubAPIError(RuntimeError):
    """Raised when GitHub answers a REST call with an error status.

    ``method`` and ``path`` identify the failed call when known, so a failure
    logged from inside a batch still says which endpoint refused.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        method: str | None = None,
        path: str | None = None,
    ) -> None:
        """Initialise with a message and what is known about the call."""
        self.status_code = status_code
        self.method = method
        self.path = path
        super().__init__(message)

    @property
    def server_error(self) -> bool:
        """Return whether GitHub reported a 5xx, which may succeed on retry."""
        return self.status_code is not None and self.status_code >= _HTTP_SERVER_ERROR

    @classmethod
    def http_error(
        cls, method: str, path: str, status_code: int, detail: str | None = None
    ) -> GitHubAPIError:
        """Return an error for non-2xx HTTP responses."""
        message = f"GitHub {method} {path} returned HTTP {status_code}"
        if detail:
            message = f"{message}: {detail}"
        return cls(message, status_code=status_code, method=method, path=path)


class GitHubResponseShapeError(RuntimeError):
    """Raised when GitHub responses do not decode into the expected record."""

    @classmethod
    def undecodable(cls, resource: str, reason: str) -> GitHubResponseShapeError:
        """Return an error for a response body that failed validation."""
        return cls(f"GitHub response for {resource} has unexpected shape: {reason}")


class GitHubConfigError(ConfigurationError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def missing_token(cls) -> GitHubConfigError:
        """Return an error when no GitHub token is configured."""
        return cls("DROVER_GITHUB_TOKEN or GITHUB_TOKEN is required for GitHub API")

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")


class UntrustedResourceURLError(ClientInputError):
    """Raised when a payload names a resource URL outside the configured API.

    The request would carry the GitHub token, so it is never sent.
    """

    @classmethod
    def foreign(cls, url: str, api_url: str) -> UntrustedResourceURLError:
        """Return an error for ``url`` not being under ``api_url``."""
        return cls(f"refusing to request {url}: not under {api_url}")
