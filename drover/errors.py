"""Domain errors raised while reconciling repository events.

The taxonomy mirrors how each failure must be treated by an invoker:

- :class:`ClientInputError` covers requests Drover cannot act on (unknown
  event kinds, payloads that do not fit their kind, malformed local URLs).
  They are reported and never retried.
- :class:`ConfigurationError` covers missing or unparseable configuration.
  The invocation fails immediately.
- :class:`UpstreamSchemaError` covers upstream data whose shape changed in
  a way Drover refuses to absorb silently.
"""

from __future__ import annotations


class DroverError(Exception):
    """Base class for Drover domain errors."""


class ClientInputError(DroverError):
    """Raised when the invoker supplied input Drover cannot act on."""


class UnrecognizedEventError(ClientInputError):
    """Raised when an event kind is outside the routed set."""

    def __init__(self, kind: str) -> None:
        """Initialise with the rejected event kind."""
        self.kind = kind
        super().__init__(f"invalid event type: {kind}")


class InvalidEventPayloadError(ClientInputError):
    """Raised when an event payload does not match its kind."""

    def __init__(self, kind: str, reason: str) -> None:
        """Initialise with the event kind and the decoding failure."""
        self.kind = kind
        self.reason = reason
        super().__init__(f"invalid {kind} payload: {reason}")


class InvalidTargetUrlError(ClientInputError):
    """Raised when a local invocation URL does not match the grammar."""

    def __init__(self, url: str) -> None:
        """Initialise with the rejected URL."""
        self.url = url
        super().__init__(f"invalid URL: {url}")


class ConfigurationError(DroverError):
    """Raised when process configuration is missing or invalid."""


class InvalidRepositoryIdentityError(ConfigurationError):
    """Raised when ``GITHUB_REPOSITORY`` is not ``owner/name``."""

    def __init__(self, value: str | None) -> None:
        """Initialise with the raw environment value."""
        self.value = value
        super().__init__(f"invalid GITHUB_REPOSITORY value: {value}")


class MissingProjectColumnError(ConfigurationError):
    """Raised when a scheduled trigger runs without a project column."""

    def __init__(self) -> None:
        """Initialise with a fixed message."""
        super().__init__(
            "Project column number is undefined. Skipping scheduled job."
        )


class InvalidSettingError(ConfigurationError):
    """Raised when an environment setting cannot be parsed."""

    def __init__(self, env_var: str, value: str, expected: str) -> None:
        """Initialise with the variable name, raw value and expectation."""
        self.env_var = env_var
        self.value = value
        super().__init__(f"{env_var} must be {expected}, got: {value!r}")


class UpstreamSchemaError(DroverError):
    """Raised when upstream data no longer has the expected shape."""


class MalformedCardReferenceError(UpstreamSchemaError):
    """Raised when a project card content URL cannot be decomposed."""

    def __init__(self, content_url: str, reason: str) -> None:
        """Initialise with the offending content URL."""
        self.content_url = content_url
        self.reason = reason
        super().__init__(f"Unexpected URL format ({reason}): {content_url}")

    @classmethod
    def segment_count(cls, content_url: str, count: int) -> MalformedCardReferenceError:
        """Return an error for a content URL with the wrong segment count."""
        return cls(content_url, f"expected 8 path segments, got {count}")

    @classmethod
    def non_numeric(cls, content_url: str) -> MalformedCardReferenceError:
        """Return an error for a content URL without a numeric tail."""
        return cls(content_url, "final segment is not a pull request number")
