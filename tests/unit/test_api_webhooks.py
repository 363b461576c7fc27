"""Unit tests for the GitHub webhook receiver.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_webhooks.py

"""

from __future__ import annotations

import hashlib
import hmac
import json
import typing as typ

import falcon
import falcon.testing
import pytest

from drover.api.app import AppDependencies, create_app
from drover.api.resources import signature_matches
from drover.reconcile import EventRouter
from tests.helpers.event_payloads import pull_request_payload, push_payload
from tests.helpers.github_fakes import (
    FakeGitHubClient,
    RecordingActions,
    card_url,
    make_card,
    make_context,
    make_pull_request,
)

_SECRET = "s3cret"  # noqa: S105 - test fixture value


def _client(
    actions: RecordingActions,
    github: FakeGitHubClient | None = None,
    *,
    secret: str | None = None,
    column_id: int | None = None,
) -> falcon.testing.TestClient:
    router = EventRouter.for_context(
        make_context(github or FakeGitHubClient(), actions, column_id=column_id)
    )
    return falcon.testing.TestClient(
        create_app(AppDependencies(router=router, webhook_secret=secret))
    )


def _sign(body: bytes, secret: str = _SECRET) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def _deliver(
    client: falcon.testing.TestClient,
    kind: str | None,
    payload: object,
    headers: dict[str, str] | None = None,
) -> falcon.testing.Result:
    all_headers = {"Content-Type": "application/json", **(headers or {})}
    if kind is not None:
        all_headers["X-GitHub-Event"] = kind
    return client.simulate_post(
        "/webhooks/github", body=json.dumps(payload), headers=all_headers
    )


class TestDelivery:
    """Tests for routing deliveries."""

    def test_pull_request_delivery_is_reconciled(self) -> None:
        """A relevant pull request delivery runs the pipeline."""
        actions = RecordingActions()
        payload: dict[str, typ.Any] = {
            "action": "synchronize",
            "pull_request": pull_request_payload(7),
        }

        result = _deliver(_client(actions), "pull_request", payload)

        assert result.status == falcon.HTTP_200, "expected HTTP 200"
        assert result.json == {
            "event": "pull_request",
            "status": "reconciled",
            "pull_request": 7,
        }
        assert actions.calls == [("update", 7), ("merge", 7)]

    def test_ignored_delivery_reports_reason(self) -> None:
        """Ignored events still answer 200 with their reason."""
        result = _deliver(
            _client(RecordingActions()), "push", push_payload("refs/tags/v1")
        )

        assert result.status == falcon.HTTP_200
        assert result.json["reason"] == "not_a_branch"

    def test_ping_answers_pong(self) -> None:
        """GitHub's ping delivery is acknowledged without routing."""
        result = _deliver(
            _client(RecordingActions()), "ping", {"zen": "Keep it simple."}
        )

        assert result.json == {"status": "pong"}


class TestClientErrors:
    """Tests for deliveries Drover cannot act on."""

    def test_missing_event_header_is_400(self) -> None:
        """Deliveries must name their event."""
        result = _deliver(_client(RecordingActions()), None, {})

        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert "X-GitHub-Event" in result.json["description"]

    def test_unrecognized_event_is_400(self) -> None:
        """Unrouted kinds are rejected as invalid input."""
        result = _deliver(
            _client(RecordingActions()), "release", {"action": "published"}
        )

        assert result.status == falcon.HTTP_400
        assert result.json["description"] == "invalid event type: release"

    def test_invalid_body_is_400(self) -> None:
        """Bodies that are not JSON objects are rejected."""
        client = _client(RecordingActions())

        result = client.simulate_post(
            "/webhooks/github",
            body="not json",
            headers={"X-GitHub-Event": "push"},
        )

        assert result.status == falcon.HTTP_400


class TestSignatures:
    """Tests for X-Hub-Signature-256 verification."""

    def test_valid_signature_is_accepted(self) -> None:
        """Correctly signed deliveries are routed."""
        actions = RecordingActions()
        body = json.dumps({"action": "opened", "pull_request": pull_request_payload(3)})

        result = _client(actions, secret=_SECRET).simulate_post(
            "/webhooks/github",
            body=body,
            headers={
                "X-GitHub-Event": "pull_request",
                "X-Hub-Signature-256": _sign(body.encode("utf-8")),
            },
        )

        assert result.status == falcon.HTTP_200
        assert actions.updated == [3]

    @pytest.mark.parametrize("signature", [None, "sha256=deadbeef", "sha1=abc"])
    def test_bad_signature_is_401(self, signature: str | None) -> None:
        """Unsigned or wrongly signed deliveries are refused unrouted."""
        actions = RecordingActions()
        headers = {"X-Hub-Signature-256": signature} if signature else {}

        result = _deliver(
            _client(actions, secret=_SECRET),
            "pull_request",
            {"action": "opened", "pull_request": pull_request_payload(3)},
            headers,
        )

        assert result.status == falcon.HTTP_401, "expected HTTP 401"
        assert actions.calls == []

    def test_signature_helper(self) -> None:
        """signature_matches accepts only the HMAC of the exact body."""
        body = b'{"zen": "ok"}'

        assert signature_matches(_SECRET, body, _sign(body))
        assert not signature_matches(_SECRET, body + b" ", _sign(body))
        assert not signature_matches(_SECRET, body, None)


class TestDomainErrors:
    """Tests for configuration and upstream failures."""

    def test_schedule_without_column_is_500(self) -> None:
        """A scheduled delivery without a column is a configuration error."""
        result = _deliver(_client(RecordingActions()), "schedule", {})

        assert result.status == falcon.HTTP_500
        assert result.json["title"] == "Configuration error"

    def test_malformed_card_is_502(self) -> None:
        """Malformed project card URLs surface as upstream errors."""
        github = FakeGitHubClient(
            pull_requests=[make_pull_request(1)],
            cards=[make_card(card_url(1)), make_card("https://example.test/2")],
        )

        result = _deliver(
            _client(RecordingActions(), github, column_id=9), "schedule", {}
        )

        assert result.status == falcon.HTTP_502
        assert "Unexpected URL format" in result.json["description"]
