"""Sweep of abandoned temporary branches.

Runs at the start of every end-to-end run (and from the ``sweep`` CLI
command). Branches minted by earlier runs, both feature branches and the
renovate branches opened for them, are deleted once they have expired. Many
runs may sweep at once; a branch deleted by someone else in the meantime is
not an error.
"""

from datetime import UTC, datetime, timedelta

import structlog

from renovate_config.branches.expiry import MAXIMUM_AGE
from renovate_config.branches.naming import FeatureBranchName, RenovateBranchPrefix
from renovate_config.providers.github_rest import GitHubRestProvider

log = structlog.get_logger(__name__)


def is_expired_branch(
    branch_name: str,
    now: datetime | None = None,
    max_age: timedelta = MAXIMUM_AGE,
) -> bool:
    """Whether ``branch_name`` is a temporary branch old enough to delete.

    The name is tried as both a feature branch and a renovate branch; names
    matching neither (``main``, hand-made branches) are never expired.
    """
    feature_branch = FeatureBranchName.parse(branch_name)
    if feature_branch is not None and feature_branch.has_expired(now, max_age):
        return True

    renovate_branch = RenovateBranchPrefix.parse(branch_name)
    return renovate_branch is not None and renovate_branch.has_expired(now, max_age)


async def find_expired_branches(
    provider: GitHubRestProvider,
    now: datetime | None = None,
    max_age: timedelta = MAXIMUM_AGE,
) -> list[str]:
    """List remote branch names that the sweep would delete."""
    if now is None:
        now = datetime.now(UTC)

    branches = await provider.list_branches()
    return [b.name for b in branches if is_expired_branch(b.name, now, max_age)]


async def sweep_expired_branches(
    provider: GitHubRestProvider,
    now: datetime | None = None,
    max_age: timedelta = MAXIMUM_AGE,
) -> list[str]:
    """Delete every expired temporary branch of the repository.

    Args:
        provider: Connected GitHub provider for the scratch repository
        now: Reference time, defaults to the current UTC time
        max_age: Maximum lifetime of a temporary branch

    Returns:
        Names of the branches this call actually deleted

    Raises:
        GithubException: For API failures other than an already-deleted branch
    """
    deleted: list[str] = []

    for branch_name in await find_expired_branches(provider, now, max_age):
        log.info("deleting_expired_branch", branch=branch_name)
        if await provider.delete_branch(branch_name):
            deleted.append(branch_name)
        else:
            log.info("expired_branch_already_deleted", branch=branch_name)

    log.info("branch_sweep_completed", deleted=len(deleted))
    return deleted
