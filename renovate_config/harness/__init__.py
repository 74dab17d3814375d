"""End-to-end harness: scratch repositories, renovate runs and snapshot assertions."""

from renovate_config.harness.context import RenovateTestContext
from renovate_config.harness.snapshots import assert_snapshot

__all__ = ["RenovateTestContext", "assert_snapshot"]
