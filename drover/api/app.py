"""Application factory for the Drover Falcon ASGI application.

Usage
-----
Create a health-only app (no GitHub credentials)::

    app = create_app()

Create an app that reconciles webhook deliveries::

    from drover.api.app import AppDependencies, create_app

    app = create_app(AppDependencies(router=router, webhook_secret=secret))

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from drover.api.errors import register_error_handlers
from drover.api.resources import GitHubWebhookResource, HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from drover.reconcile.router import EventRouter

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    router
        Event router webhook deliveries are dispatched to. When ``None`` only
        the health endpoints are registered.
    webhook_secret
        Shared secret used to verify ``X-Hub-Signature-256``. When ``None``
        deliveries are accepted unsigned.

    """

    router: EventRouter | None = None
    webhook_secret: str | None = None


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None`` or without a router,
        only ``/health`` and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    router = dependencies.router if dependencies is not None else None

    app = falcon.asgi.App()
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(webhooks_enabled=router is not None))

    if router is not None and dependencies is not None:
        app.add_route(
            "/webhooks/github",
            GitHubWebhookResource(router, secret=dependencies.webhook_secret),
        )

    register_error_handlers(app)
    return app
