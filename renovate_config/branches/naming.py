"""Temporary branch naming scheme.

Every end-to-end run works on its own scratch branch so that concurrent runs
never collide and abandoned branches can be recognised and swept later. Two
families of names share one encoding of ``(created_at, id)``:

    Feature branch (the run's base branch, a complete name):
        feature/20250403200016_dab5d7514d194cdcbdfac98939b18b3d

    Renovate branch prefix (handed to renovate, which appends its own suffix):
        renovate/20250403200016_dab5d7514d194cdcbdfac98939b18b3d_
        renovate/20250403200016_dab5d7514d194cdcbdfac98939b18b3d_major-microsoft

The folder literal must come before the first ``/``; the rest of the name is
tokenized on both ``/`` and ``_``. A feature branch name must be
exactly ``[feature, <date>, <id>]``; a renovate branch needs at least
``[renovate, <date>, <id>]`` and any further tokens belong to renovate's
suffix. Ids therefore never contain either delimiter. The codec does not check
that when formatting.

Parsing never raises: anything that does not fit the shape returns None.

Example:
    >>> from renovate_config.branches.naming import FeatureBranchName, RenovateBranchPrefix
    >>> branch = FeatureBranchName.parse("feature/20250403200016_42")
    >>> branch.id
    '42'
    >>> RenovateBranchPrefix.from_feature_branch(branch).prefix
    'renovate/20250403200016_42_'
    >>> FeatureBranchName.parse("main") is None
    True
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from renovate_config.branches.counter import BranchIdCounter
from renovate_config.branches.expiry import MAXIMUM_AGE, has_expired

DATE_FORMAT = "%Y%m%d%H%M%S"

FEATURE_FOLDER = "feature"
RENOVATE_FOLDER = "renovate"

_DELIMITERS = re.compile(r"[/_]")
_TIMESTAMP_LENGTH = 14


def tokenize(branch_name: str) -> list[str]:
    """Split a branch name on every ``/`` and ``_``."""
    return _DELIMITERS.split(branch_name)


def _folder_tokens(branch_name: str, folder: str) -> list[str] | None:
    """Tokenize ``branch_name`` if it lives directly under ``folder/``.

    The folder must be the text before the first ``/``; a name without any
    ``/`` (``feature_20250403200016_42``) never belongs to a folder.
    """
    head, separator, rest = branch_name.partition("/")
    if not separator or head != folder:
        return None
    return [head, *tokenize(rest)]


def format_timestamp(value: datetime) -> str:
    """Render a datetime as the 14-digit UTC timestamp used in branch names."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime(DATE_FORMAT)


def parse_timestamp(text: str) -> datetime | None:
    """Parse a 14-digit ``YYYYMMDDHHMMSS`` token as an aware UTC datetime.

    Field widths are fixed and no offset suffix is accepted. Returns None for
    wrong lengths, non-digits and impossible dates such as month 13.
    """
    if len(text) != _TIMESTAMP_LENGTH or not (text.isascii() and text.isdigit()):
        return None

    try:
        return datetime(
            int(text[0:4]),
            int(text[4:6]),
            int(text[6:8]),
            int(text[8:10]),
            int(text[10:12]),
            int(text[12:14]),
            tzinfo=UTC,
        )
    except ValueError:
        return None


@dataclass(frozen=True)
class TemporaryBranchName:
    """Identity shared by both branch name families.

    Attributes:
        created_at: Creation time, aware UTC, truncated to whole seconds.
            Naive values are taken to be UTC already.
        id: Opaque token, unique within the minting process
    """

    created_at: datetime
    id: str

    def __post_init__(self) -> None:
        created_at = self.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        else:
            created_at = created_at.astimezone(UTC)
        object.__setattr__(self, "created_at", created_at.replace(microsecond=0))

    @property
    def timestamp(self) -> str:
        """The 14-digit timestamp token."""
        return format_timestamp(self.created_at)

    def has_expired(self, now: datetime | None = None, max_age: timedelta = MAXIMUM_AGE) -> bool:
        """Whether this branch is old enough to be swept. See :func:`has_expired`."""
        return has_expired(self, now, max_age)


@dataclass(frozen=True)
class FeatureBranchName(TemporaryBranchName):
    """The per-run base branch: ``feature/<timestamp>_<id>``."""

    @classmethod
    def create(cls, counter: BranchIdCounter, now: datetime | None = None) -> FeatureBranchName:
        """Mint a fresh identity from the shared counter and the current time.

        Args:
            counter: Process-wide id source
            now: Creation time override, defaults to the current UTC time

        Returns:
            New feature branch name
        """
        return cls(now if now is not None else datetime.now(UTC), counter.next_id())

    @classmethod
    def parse(cls, branch_name: str) -> FeatureBranchName | None:
        """Parse a complete feature branch name.

        Only an exact three-token name matches; a trailing ``_`` or extra
        suffix is rejected.

        Args:
            branch_name: Any branch name

        Returns:
            The parsed identity, or None if the name is not a feature branch
        """
        tokens = _folder_tokens(branch_name, FEATURE_FOLDER)
        if tokens is None or len(tokens) != 3:
            return None

        created_at = parse_timestamp(tokens[1])
        if created_at is None:
            return None

        return cls(created_at, tokens[2])

    @property
    def name(self) -> str:
        return f"{FEATURE_FOLDER}/{self.timestamp}_{self.id}"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class RenovateBranchPrefix(TemporaryBranchName):
    """Prefix for every branch renovate opens during one run.

    Renovate appends its own suffix after the trailing underscore, e.g.
    ``renovate/20250403200016_42_major-microsoft``.
    """

    @classmethod
    def from_feature_branch(cls, feature_branch: FeatureBranchName) -> RenovateBranchPrefix:
        """Derive the prefix scoping renovate's branches for a run."""
        return cls(feature_branch.created_at, feature_branch.id)

    @classmethod
    def parse(cls, branch_name: str) -> RenovateBranchPrefix | None:
        """Parse a renovate branch name (or bare prefix).

        At least three tokens are required; anything after the id is
        renovate's suffix and is ignored.

        Args:
            branch_name: Any branch name

        Returns:
            The parsed identity, or None if the name was not created under a
            temporary renovate prefix
        """
        tokens = _folder_tokens(branch_name, RENOVATE_FOLDER)
        if tokens is None or len(tokens) < 3:
            return None

        created_at = parse_timestamp(tokens[1])
        if created_at is None:
            return None

        return cls(created_at, tokens[2])

    @property
    def prefix(self) -> str:
        return f"{RENOVATE_FOLDER}/{self.timestamp}_{self.id}_"

    def belongs_to(self, feature_branch: FeatureBranchName) -> bool:
        """Whether this branch was created by renovate for ``feature_branch``'s run."""
        return self.id == feature_branch.id and self.created_at == feature_branch.created_at

    def __str__(self) -> str:
        return self.prefix
