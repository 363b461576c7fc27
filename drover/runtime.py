"""Granian entrypoint for the Drover webhook service.

``drover.runtime:create_app`` is the factory Granian imports in each worker.
It serves ``POST /webhooks/github`` when a GitHub token and
``GITHUB_REPOSITORY`` are both present, and only the health endpoints
otherwise, so a misconfigured deployment still answers health checks.

Server settings:

- ``DROVER_HOST``: bind address (default ``0.0.0.0``)
- ``DROVER_PORT``: listen port (default ``8080``)
- ``DROVER_LOG_LEVEL``: femtologging level (default ``INFO``)

Webhook settings:

- ``DROVER_GITHUB_TOKEN`` or ``GITHUB_TOKEN`` with ``GITHUB_REPOSITORY``
- ``DROVER_WEBHOOK_SECRET``: enables ``X-Hub-Signature-256`` checks

Start the server with ``drover-server`` or ``python -m drover.runtime``.
"""

from __future__ import annotations

import dataclasses
import os
import typing as typ

from drover.errors import ConfigurationError, InvalidSettingError
from drover.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["ServerSettings", "create_app", "main"]

logger = get_logger(__name__)

_DEFAULT_HOST = "0.0.0.0"  # noqa: S104 - containers publish the port explicitly
_DEFAULT_PORT = 8080
_DEFAULT_LOG_LEVEL = "INFO"
_PORT_RANGE = range(1, 65536)


@dataclasses.dataclass(frozen=True, slots=True)
class ServerSettings:
    """Where Granian listens and how verbosely Drover logs."""

    host: str = _DEFAULT_HOST
    port: int = _DEFAULT_PORT
    log_level: str = _DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> ServerSettings:
        """Read ``DROVER_HOST``, ``DROVER_PORT`` and ``DROVER_LOG_LEVEL``.

        The log level is passed through untouched; :func:`main` normalizes
        it once logging is configured so the fallback can be reported.

        Raises
        ------
        InvalidSettingError
            If ``DROVER_PORT`` is not an integer TCP port.

        """
        return cls(
            host=os.environ.get("DROVER_HOST", _DEFAULT_HOST),
            port=cls._parse_port(os.environ.get("DROVER_PORT")),
            log_level=os.environ.get("DROVER_LOG_LEVEL", _DEFAULT_LOG_LEVEL),
        )

    @staticmethod
    def _parse_port(raw: str | None) -> int:
        if raw is None:
            return _DEFAULT_PORT
        try:
            port = int(raw)
        except ValueError:
            port = 0
        if port not in _PORT_RANGE:
            raise InvalidSettingError(
                "DROVER_PORT",
                raw,
                f"an integer between {_PORT_RANGE.start} and {_PORT_RANGE.stop - 1}",
            )
        return port


def _github_token() -> str | None:
    return os.environ.get("DROVER_GITHUB_TOKEN") or os.environ.get("GITHUB_TOKEN")


def create_app() -> falcon.asgi.App:
    """Build the ASGI application for one Granian worker.

    Raises
    ------
    ConfigurationError
        If credentials are present but a Drover setting cannot be parsed.

    """
    from drover.api.app import AppDependencies
    from drover.api.app import create_app as create_api_app

    if not (_github_token() and os.environ.get("GITHUB_REPOSITORY")):
        log_warning(
            logger,
            "GitHub credentials not configured; serving health endpoints only",
        )
        return create_api_app()

    from drover.factory import build_context
    from drover.github import GitHubRestClient, GitHubRestConfig
    from drover.reconcile import EventRouter

    # Shared by every request the worker serves; closed with the process.
    client = GitHubRestClient(GitHubRestConfig.from_env())
    return create_api_app(
        AppDependencies(
            router=EventRouter.for_context(build_context(client)),
            webhook_secret=os.environ.get("DROVER_WEBHOOK_SECRET") or None,
        )
    )


def main() -> None:
    """Serve :func:`create_app` with Granian until interrupted.

    Invalid server settings are logged and end the process with status 1.
    """
    from granian import Granian
    from granian.constants import Interfaces

    try:
        settings = ServerSettings.from_env()
    except ConfigurationError as exc:
        configure_logging(_DEFAULT_LOG_LEVEL)
        log_error(logger, "Cannot start Drover: %s", exc)
        raise SystemExit(1) from exc

    level, invalid = configure_logging(settings.log_level)
    if invalid:
        log_warning(
            logger,
            "Invalid DROVER_LOG_LEVEL %r, falling back to %s",
            settings.log_level,
            level,
        )
    log_info(
        logger,
        "Starting Drover on %s:%d (log_level=%s)",
        settings.host,
        settings.port,
        level,
    )

    Granian(
        "drover.runtime:create_app",
        address=settings.host,
        port=settings.port,
        interface=Interfaces.ASGI,
        factory=True,
    ).serve()


if __name__ == "__main__":
    main()
