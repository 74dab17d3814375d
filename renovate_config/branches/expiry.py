"""Expiry policy for temporary branches.

A temporary branch embeds its creation time in its name. Once that time is
older than the longest plausible end-to-end run, the branch is considered
abandoned and the next run's sweep deletes it.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from renovate_config.branches.naming import TemporaryBranchName

# One end-to-end run plus scheduling slack.
MAXIMUM_AGE = timedelta(hours=2)


def has_expired(
    identity: TemporaryBranchName,
    now: datetime | None = None,
    max_age: timedelta = MAXIMUM_AGE,
) -> bool:
    """Return True if ``identity`` was created at least ``max_age`` ago.

    The boundary is inclusive: at exactly ``created_at + max_age`` the branch
    has expired, one microsecond earlier it has not.

    Args:
        identity: Parsed or freshly minted branch identity
        now: Reference time, defaults to the current UTC time. Naive values
            are taken to be UTC, like naive creation times.
        max_age: Maximum lifetime of a temporary branch

    Returns:
        Whether the branch is stale and safe to delete
    """
    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    else:
        now = now.astimezone(UTC)
    return identity.created_at <= now - max_age
