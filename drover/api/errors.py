"""Falcon error handlers translating domain errors into HTTP responses.

Usage
-----
Register error handlers on the Falcon app::

    from drover.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from drover.errors import ClientInputError, ConfigurationError, UpstreamSchemaError
from drover.logging import get_logger, log_error

if typ.TYPE_CHECKING:
    from falcon.asgi import App, Request, Response

__all__ = [
    "InvalidSignatureError",
    "MissingEventHeaderError",
    "handle_client_input",
    "handle_configuration_error",
    "handle_upstream_schema_error",
    "register_error_handlers",
]

logger = get_logger(__name__)


class MissingEventHeaderError(ClientInputError):
    """Raised when a webhook delivery lacks the ``X-GitHub-Event`` header."""

    def __init__(self) -> None:
        """Initialise with a fixed message."""
        super().__init__("X-GitHub-Event header is required")


class InvalidSignatureError(ClientInputError):
    """Raised when a webhook delivery's HMAC signature does not verify."""

    def __init__(self) -> None:
        """Initialise with a fixed message."""
        super().__init__("X-Hub-Signature-256 does not match the payload")


async def handle_client_input(
    _req: Request,
    resp: Response,
    ex: ClientInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ClientInputError`` to HTTP 400, or 401 for bad signatures.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The client input error.
    _params
        URI template parameters (unused).

    """
    if isinstance(ex, InvalidSignatureError):
        resp.status = falcon.HTTP_401
        resp.media = {"title": "Invalid signature", "description": str(ex)}
        return
    resp.status = falcon.HTTP_400
    resp.media = {"title": "Invalid input", "description": str(ex)}


async def handle_configuration_error(
    _req: Request,
    resp: Response,
    ex: ConfigurationError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ConfigurationError`` to HTTP 500 with the configuration problem."""
    log_error(logger, "Configuration error: %s", ex)
    resp.status = falcon.HTTP_500
    resp.media = {"title": "Configuration error", "description": str(ex)}


async def handle_upstream_schema_error(
    _req: Request,
    resp: Response,
    ex: UpstreamSchemaError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``UpstreamSchemaError`` to HTTP 502 so the drift is visible."""
    log_error(logger, "Upstream schema error: %s", ex)
    resp.status = falcon.HTTP_502
    resp.media = {"title": "Unexpected upstream data", "description": str(ex)}


def register_error_handlers(app: App) -> None:
    """Register the domain error handlers on ``app``."""
    app.add_error_handler(ClientInputError, handle_client_input)
    app.add_error_handler(ConfigurationError, handle_configuration_error)
    app.add_error_handler(UpstreamSchemaError, handle_upstream_schema_error)
