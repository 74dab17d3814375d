"""
Domain models for the end-to-end harness.

Two groups of records live here:

- Normalized GitHub objects (branches, pull requests, commits, workflow runs)
  converted from PyGithub types by the GitHub provider.
- Snapshot records (pull request, package update and commit infos) that the
  harness renders into the text compared against expected snapshots.

Example:
    Building a snapshot record from a pull request::

        info = PullRequestInfo(
            title=pr.title,
            labels=sorted(pr.labels),
            package_updates=extract_package_updates(pr.body),
            is_auto_merge_enabled=pr.auto_merge_enabled,
        )
"""

from dataclasses import dataclass, field
from enum import Enum


class WorkflowRunStatus(str, Enum):
    """Status of a GitHub Actions workflow run.

    Only COMPLETED is terminal; the harness polls until every run for a
    commit reaches it.
    """

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    WAITING = "waiting"
    REQUESTED = "requested"
    PENDING = "pending"
    COMPLETED = "completed"


@dataclass
class Branch:
    """A remote branch and the SHA of its head commit."""

    name: str
    sha: str


@dataclass
class PullRequest:
    """Represents an open pull request opened by renovate."""

    number: int
    title: str
    body: str
    base: str
    head: str
    labels: list[str] = field(default_factory=list)
    auto_merge_enabled: bool = False
    """True when GitHub auto-merge is armed on the pull request."""


@dataclass
class Commit:
    """A commit reachable from the run's feature branch."""

    sha: str
    message: str


@dataclass
class WorkflowRun:
    """A workflow run triggered for a commit."""

    id: int
    status: str
    conclusion: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == WorkflowRunStatus.COMPLETED.value


@dataclass(frozen=True)
class PackageUpdateInfo:
    """One row of the update table renovate puts in a pull request body."""

    package: str | None
    type: str | None
    update: str | None


@dataclass
class PullRequestInfo:
    """What a snapshot asserts about one pull request."""

    title: str
    labels: list[str]
    package_updates: list[PackageUpdateInfo]
    is_auto_merge_enabled: bool


@dataclass(frozen=True)
class CommitInfo:
    """What a snapshot asserts about one commit."""

    message: str
