"""Typed repository events.

Every routed event kind decodes into one variant of the :data:`Event` tagged
union. The tag is the webhook event name, injected under ``event_kind`` before
decoding because GitHub delivers the name out of band (a request header or
``GITHUB_EVENT_NAME``) rather than inside the payload.

>>> event = parse_event("push", {
...     "ref": "refs/heads/main",
...     "repository": {"name": "reef", "owner": {"login": "octo"}},
... })
>>> event.kind, event.ref
(<EventKind.PUSH: 'push'>, 'refs/heads/main')

"""

from __future__ import annotations

import collections.abc as cabc
import enum
import typing as typ

import msgspec

from drover.config import RepositoryIdentity
from drover.errors import InvalidEventPayloadError, UnrecognizedEventError
from drover.github.models import PullRequest

_TAG_FIELD = "event_kind"


class EventKind(enum.StrEnum):
    """Event kinds Drover routes to a reconciliation handler."""

    PUSH = "push"
    STATUS = "status"
    PULL_REQUEST = "pull_request"
    CHECK_SUITE = "check_suite"
    CHECK_RUN = "check_run"
    PULL_REQUEST_REVIEW = "pull_request_review"
    SCHEDULE = "schedule"
    ISSUE_COMMENT = "issue_comment"


class Owner(msgspec.Struct, kw_only=True):
    """Repository owner; push payloads also carry ``name``."""

    login: str | None = None
    name: str | None = None


class RepositoryRef(msgspec.Struct, kw_only=True):
    """Repository embedded in an event payload."""

    name: str
    owner: Owner

    @property
    def identity(self) -> RepositoryIdentity:
        """Return the owner/name pair for API calls."""
        return RepositoryIdentity(
            owner=self.owner.login or self.owner.name or "",
            name=self.name,
        )


class _Event(msgspec.Struct, kw_only=True, tag_field=_TAG_FIELD):
    """Base for event variants."""


class PushEvent(_Event, tag=EventKind.PUSH.value):
    """A ref was pushed."""

    ref: str
    repository: RepositoryRef

    @property
    def kind(self) -> EventKind:
        """Return the event kind."""
        return EventKind.PUSH


class BranchName(msgspec.Struct, kw_only=True):
    """Branch containing the commit a status refers to."""

    name: str


class StatusEvent(_Event, tag=EventKind.STATUS.value):
    """A commit status changed."""

    state: str
    repository: RepositoryRef
    branches: list[BranchName] = msgspec.field(default_factory=list)

    @property
    def kind(self) -> EventKind:
        """Return the event kind."""
        return EventKind.STATUS


class PullRequestEvent(_Event, tag=EventKind.PULL_REQUEST.value):
    """Activity on a pull request."""

    action: str
    pull_request: PullRequest
    repository: RepositoryRef | None = None

    @property
    def kind(self) -> EventKind:
        """Return the event kind."""
        return EventKind.PULL_REQUEST


class SubmittedReview(msgspec.Struct, kw_only=True):
    """Review carried by a ``pull_request_review`` payload."""

    state: str


class PullRequestReviewEvent(_Event, tag=EventKind.PULL_REQUEST_REVIEW.value):
    """A review was submitted, edited or dismissed."""

    action: str
    review: SubmittedReview
    pull_request: PullRequest
    repository: RepositoryRef | None = None

    @property
    def kind(self) -> EventKind:
        """Return the event kind."""
        return EventKind.PULL_REQUEST_REVIEW


class IssueRef(msgspec.Struct, kw_only=True):
    """Issue a comment belongs to.

    GitHub models pull requests as issues; ``pull_request`` is only present
    when the issue is one.
    """

    number: int
    pull_request: dict[str, typ.Any] | None = None

    @property
    def is_pull_request(self) -> bool:
        """Return True when the comment was made on a pull request."""
        return self.pull_request is not None


class IssueCommentEvent(_Event, tag=EventKind.ISSUE_COMMENT.value):
    """A comment was made on an issue or pull request."""

    action: str
    issue: IssueRef
    repository: RepositoryRef

    @property
    def kind(self) -> EventKind:
        """Return the event kind."""
        return EventKind.ISSUE_COMMENT


class CheckPullRequestRef(msgspec.Struct, kw_only=True):
    """Pull request a check suite or run is attached to."""

    url: str
    number: int


class CheckDetails(msgspec.Struct, kw_only=True):
    """Shared body of ``check_suite`` and ``check_run`` payloads."""

    conclusion: str | None = None
    head_branch: str | None = None
    pull_requests: list[CheckPullRequestRef] = msgspec.field(default_factory=list)


class CheckSuiteEvent(_Event, tag=EventKind.CHECK_SUITE.value):
    """A check suite changed state."""

    action: str
    check_suite: CheckDetails
    repository: RepositoryRef | None = None

    @property
    def kind(self) -> EventKind:
        """Return the event kind."""
        return EventKind.CHECK_SUITE

    @property
    def check(self) -> CheckDetails:
        """Return the check body under the name shared with check runs."""
        return self.check_suite


class CheckRunEvent(_Event, tag=EventKind.CHECK_RUN.value):
    """A check run changed state."""

    action: str
    check_run: CheckDetails
    repository: RepositoryRef | None = None

    @property
    def kind(self) -> EventKind:
        """Return the event kind."""
        return EventKind.CHECK_RUN

    @property
    def check(self) -> CheckDetails:
        """Return the check body under the name shared with check suites."""
        return self.check_run


class ScheduleEvent(_Event, tag=EventKind.SCHEDULE.value):
    """A scheduled tick; the cron expression is informational only."""

    schedule: str | None = None

    @property
    def kind(self) -> EventKind:
        """Return the event kind."""
        return EventKind.SCHEDULE


Event = (
    PushEvent
    | StatusEvent
    | PullRequestEvent
    | PullRequestReviewEvent
    | IssueCommentEvent
    | CheckSuiteEvent
    | CheckRunEvent
    | ScheduleEvent
)

CheckEvent = CheckSuiteEvent | CheckRunEvent


def parse_event_kind(kind: str) -> EventKind:
    """Return the routed kind for ``kind``.

    Raises
    ------
    UnrecognizedEventError
        If ``kind`` is not one of the routed event kinds.

    """
    try:
        return EventKind(kind)
    except ValueError as exc:
        raise UnrecognizedEventError(kind) from exc


def parse_event(kind: str, payload: cabc.Mapping[str, typ.Any] | None) -> Event:
    """Decode a raw payload into its event variant.

    Parameters
    ----------
    kind
        Webhook event name, for example ``push`` or ``check_run``.
    payload
        Decoded JSON payload. Scheduled ticks may pass ``None``.

    Raises
    ------
    UnrecognizedEventError
        If ``kind`` is not routed.
    InvalidEventPayloadError
        If the payload does not match the shape of its kind.

    """
    event_kind = parse_event_kind(kind)
    if payload is None:
        payload = {}
    if not isinstance(payload, cabc.Mapping):
        raise InvalidEventPayloadError(kind, "payload must be a JSON object")
    tagged = {**payload, _TAG_FIELD: event_kind.value}
    try:
        return msgspec.convert(tagged, type=Event)
    except msgspec.ValidationError as exc:
        raise InvalidEventPayloadError(kind, str(exc)) from exc
