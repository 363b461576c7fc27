"""Command-line entry point for one-shot reconciliation.

``drover event`` reconciles the event a GitHub Actions workflow was triggered
by, reading ``GITHUB_EVENT_NAME`` and ``GITHUB_EVENT_PATH`` unless overridden.
``drover url`` reconciles a pull request or branch named by its web URL.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import typing as typ
from pathlib import Path

import msgspec

from drover.errors import ClientInputError, DroverError
from drover.factory import open_router_from_env
from drover.local import DEFAULT_WEB_HOST, execute_locally
from drover.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    from drover.reconcile.outcome import ReconcileOutcome

logger = get_logger(__name__)


class MissingEventError(ClientInputError):
    """Raised when no event name or payload was supplied."""

    @classmethod
    def missing_name(cls) -> MissingEventError:
        """Return an error for a missing event name."""
        return cls("event name is required (--name or GITHUB_EVENT_NAME)")

    @classmethod
    def unreadable_payload(cls, path: Path, reason: str) -> MissingEventError:
        """Return an error for a payload file that cannot be read."""
        return cls(f"cannot read event payload {path}: {reason}")


def _load_payload(path: Path | None) -> dict[str, typ.Any] | None:
    if path is None:
        return None
    try:
        return msgspec.json.decode(path.read_bytes(), type=dict[str, typ.Any])
    except (OSError, msgspec.DecodeError) as exc:
        raise MissingEventError.unreadable_payload(path, str(exc)) from exc


async def _run_event(name: str | None, payload_path: Path | None) -> ReconcileOutcome:
    if not name:
        raise MissingEventError.missing_name()
    payload = _load_payload(payload_path)
    log_info(logger, "Event name: %s", name)
    async with open_router_from_env() as (router, _client):
        return await router.route(name, payload)


async def _run_url(url: str, host: str) -> ReconcileOutcome:
    async with open_router_from_env() as (router, client):
        return await execute_locally(router, client, url, host=host)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="drover", description=__doc__)
    parser.add_argument(
        "--log-level",
        default=os.environ.get("DROVER_LOG_LEVEL", "INFO"),
        help="Log level (default: DROVER_LOG_LEVEL or INFO)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    event = commands.add_parser("event", help="Reconcile a GitHub event payload")
    event.add_argument(
        "--name",
        default=os.environ.get("GITHUB_EVENT_NAME"),
        help="Event name (default: GITHUB_EVENT_NAME)",
    )
    event.add_argument(
        "--payload",
        type=Path,
        default=(
            Path(os.environ["GITHUB_EVENT_PATH"])
            if os.environ.get("GITHUB_EVENT_PATH")
            else None
        ),
        help="Path to the JSON event payload (default: GITHUB_EVENT_PATH)",
    )

    url = commands.add_parser("url", help="Reconcile a pull request or branch URL")
    url.add_argument("url", help="https://github.com/<owner>/<repo>/(pull|tree)/<ref>")
    url.add_argument(
        "--host",
        default=DEFAULT_WEB_HOST,
        help=f"Web host the URL must use (default: {DEFAULT_WEB_HOST})",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the requested reconciliation and return an exit code.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 when the event was handled (including when it was
        ignored), 1 for client input, configuration and upstream schema
        errors. Failures of a single pull request pipeline propagate.

    """
    args = _build_parser().parse_args(argv)

    normalized_level, invalid_level = configure_logging(args.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid log level %r, falling back to %s",
            args.log_level,
            normalized_level,
        )

    try:
        if args.command == "event":
            outcome = asyncio.run(_run_event(args.name, args.payload))
        else:
            outcome = asyncio.run(_run_url(args.url, args.host))
    except DroverError as exc:
        log_error(logger, "%s: %s", type(exc).__name__, exc)
        return 1

    log_info(logger, "Outcome: %s", outcome.to_dict())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
