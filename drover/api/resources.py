"""HTTP resources: health checks and the GitHub webhook receiver.

Usage
-----
Register the resources on the Falcon app::

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource())
    app.add_route("/webhooks/github", GitHubWebhookResource(router))

"""

from __future__ import annotations

import hashlib
import hmac
import typing as typ
from http import HTTPStatus

import msgspec

from drover.errors import InvalidEventPayloadError
from drover.logging import get_logger, log_info

from .errors import InvalidSignatureError, MissingEventHeaderError

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from drover.reconcile.router import EventRouter

__all__ = ["GitHubWebhookResource", "HealthResource", "ReadyResource"]

logger = get_logger(__name__)

_SIGNATURE_PREFIX = "sha256="


class HealthResource:
    """Liveness resource returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness resource reporting whether webhooks can be reconciled.

    The service is ready once a router is wired; a health-only deployment
    (no GitHub credentials) answers 503 so it receives no deliveries.
    """

    def __init__(self, *, webhooks_enabled: bool) -> None:
        """Initialise with whether the webhook route is registered."""
        self._webhooks_enabled = webhooks_enabled

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        if self._webhooks_enabled:
            resp.media = {"status": "ready"}
            resp.status = HTTPStatus.OK
        else:
            resp.media = {"status": "unconfigured"}
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE


def signature_matches(secret: str, body: bytes, signature: str | None) -> bool:
    """Return True when ``signature`` is the HMAC-SHA256 of ``body``."""
    if not signature or not signature.startswith(_SIGNATURE_PREFIX):
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature.removeprefix(_SIGNATURE_PREFIX), expected)


class GitHubWebhookResource:
    """Receive GitHub webhook deliveries and reconcile them.

    The event kind comes from the ``X-GitHub-Event`` header. When a secret is
    configured, ``X-Hub-Signature-256`` must verify against the raw body.
    Responses carry the reconciliation outcome as JSON.
    """

    def __init__(self, router: EventRouter, *, secret: str | None = None) -> None:
        """Initialise with the router and optional webhook secret."""
        self._router = router
        self._secret = secret

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /webhooks/github deliveries.

        Raises
        ------
        MissingEventHeaderError
            If the delivery has no ``X-GitHub-Event`` header.
        InvalidSignatureError
            If a secret is configured and the signature does not verify.
        InvalidEventPayloadError
            If the body is not a JSON object.

        """
        kind = req.get_header("X-GitHub-Event")
        if not kind:
            raise MissingEventHeaderError

        body = await req.stream.read()
        if self._secret and not signature_matches(
            self._secret, body, req.get_header("X-Hub-Signature-256")
        ):
            raise InvalidSignatureError

        log_info(
            logger,
            "Webhook delivery %s for event %s",
            req.get_header("X-GitHub-Delivery"),
            kind,
        )
        if kind == "ping":
            resp.media = {"status": "pong"}
            resp.status = HTTPStatus.OK
            return

        try:
            payload = (
                msgspec.json.decode(body, type=dict[str, typ.Any]) if body else None
            )
        except msgspec.DecodeError as exc:
            raise InvalidEventPayloadError(kind, str(exc)) from exc

        outcome = await self._router.route(kind, payload)
        resp.media = outcome.to_dict()
        resp.status = HTTPStatus.OK
