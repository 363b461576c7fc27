"""Per-invocation configuration for the reconciliation core.

Two values are read from the environment once per invocation and never
mutated afterwards:

>>> import os
>>> os.environ["GITHUB_REPOSITORY"] = "octo/reef"
>>> RepositoryIdentity.from_env().slug
'octo/reef'

>>> os.environ["DROVER_MERGE_APPROVED_BY_REVIEWERS"] = "alice, bob"
>>> DroverConfig.from_env().merge_approved_by_reviewers
('alice', 'bob')

"""

from __future__ import annotations

import dataclasses
import os
import typing as typ

from drover.errors import InvalidRepositoryIdentityError, InvalidSettingError

MergeMethod: typ.TypeAlias = typ.Literal["merge", "squash", "rebase"]

_MERGE_METHODS: tuple[MergeMethod, ...] = ("merge", "squash", "rebase")
_DEFAULT_MERGE_METHOD: MergeMethod = "merge"


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryIdentity:
    """Owner and name of the repository Drover acts on."""

    owner: str
    name: str

    @property
    def slug(self) -> str:
        """Return the GitHub-style owner/name identifier."""
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, slug: str) -> RepositoryIdentity:
        """Split an ``owner/name`` slug into an identity.

        Slugs are GitHub identifiers, not paths: exactly one separator and
        two non-empty parts are accepted.

        >>> RepositoryIdentity.parse("octo/reef")
        RepositoryIdentity(owner='octo', name='reef')

        Raises
        ------
        InvalidRepositoryIdentityError
            If ``slug`` is not ``owner/name``.

        """
        owner, sep, name = slug.partition("/")
        if not sep or not owner or not name or "/" in name:
            raise InvalidRepositoryIdentityError(slug)
        return cls(owner=owner, name=name)

    @classmethod
    def from_env(cls) -> RepositoryIdentity:
        """Build the identity from ``GITHUB_REPOSITORY``.

        Raises
        ------
        InvalidRepositoryIdentityError
            If the variable is unset or not ``owner/name``.

        """
        raw = os.environ.get("GITHUB_REPOSITORY")
        if raw is None:
            raise InvalidRepositoryIdentityError(raw)
        return cls.parse(raw.strip())


@dataclasses.dataclass(frozen=True, slots=True)
class DroverConfig:
    """Read-only settings consulted while reconciling one event.

    Attributes
    ----------
    merge_approved_by_reviewers
        Logins whose approval makes a pull request eligible for merge. When
        empty, reviews are never fetched.
    project_column_id
        Project board column polled by the scheduled trigger. ``None`` when
        scheduled merges are not configured.
    merge_method
        Merge method passed to GitHub when merging.

    """

    merge_approved_by_reviewers: tuple[str, ...] = ()
    project_column_id: int | None = None
    merge_method: MergeMethod = _DEFAULT_MERGE_METHOD

    @staticmethod
    def _parse_reviewers(raw: str) -> tuple[str, ...]:
        return tuple(login.strip() for login in raw.split(",") if login.strip())

    @staticmethod
    def _parse_column_id(raw: str) -> int | None:
        if not raw.strip():
            return None
        try:
            value = int(raw)
        except ValueError as exc:
            raise InvalidSettingError(
                "DROVER_PROJECT_COLUMN_ID", raw, "a positive integer"
            ) from exc
        if value < 1:
            raise InvalidSettingError(
                "DROVER_PROJECT_COLUMN_ID", raw, "a positive integer"
            )
        return value

    @staticmethod
    def _parse_merge_method(raw: str) -> MergeMethod:
        normalized = raw.strip().lower()
        if not normalized:
            return _DEFAULT_MERGE_METHOD
        for method in _MERGE_METHODS:
            if method == normalized:
                return method
        raise InvalidSettingError(
            "DROVER_MERGE_METHOD", raw, "one of merge, squash, rebase"
        )

    @classmethod
    def from_env(cls) -> DroverConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``DROVER_MERGE_APPROVED_BY_REVIEWERS``: Comma-separated reviewer
          logins. Empty or unset disables the review requirement.
        - ``DROVER_PROJECT_COLUMN_ID``: Optional positive integer naming the
          project column used by scheduled triggers.
        - ``DROVER_MERGE_METHOD``: ``merge`` (default), ``squash`` or
          ``rebase``.

        Raises
        ------
        InvalidSettingError
            If the column id or merge method cannot be parsed.

        """
        return cls(
            merge_approved_by_reviewers=cls._parse_reviewers(
                os.environ.get("DROVER_MERGE_APPROVED_BY_REVIEWERS", "")
            ),
            project_column_id=cls._parse_column_id(
                os.environ.get("DROVER_PROJECT_COLUMN_ID", "")
            ),
            merge_method=cls._parse_merge_method(
                os.environ.get("DROVER_MERGE_METHOD", "")
            ),
        )
