"""Domain models."""

from renovate_config.models.domain import (
    Branch,
    Commit,
    CommitInfo,
    PackageUpdateInfo,
    PullRequest,
    PullRequestInfo,
    WorkflowRun,
    WorkflowRunStatus,
)

__all__ = [
    "Branch",
    "Commit",
    "CommitInfo",
    "PackageUpdateInfo",
    "PullRequest",
    "PullRequestInfo",
    "WorkflowRun",
    "WorkflowRunStatus",
]
