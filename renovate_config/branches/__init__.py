"""Temporary branch naming, expiry and cleanup.

Example:
    >>> from renovate_config.branches import BranchIdCounter, FeatureBranchName
    >>> branch = FeatureBranchName.create(BranchIdCounter())
    >>> branch.has_expired()
    False
"""

from renovate_config.branches.counter import BranchIdCounter
from renovate_config.branches.expiry import MAXIMUM_AGE, has_expired
from renovate_config.branches.naming import (
    DATE_FORMAT,
    FeatureBranchName,
    RenovateBranchPrefix,
    TemporaryBranchName,
)

__all__ = [
    "DATE_FORMAT",
    "MAXIMUM_AGE",
    "BranchIdCounter",
    "FeatureBranchName",
    "RenovateBranchPrefix",
    "TemporaryBranchName",
    "has_expired",
]
