"""Monotonic id source for temporary branch names."""

import threading


class BranchIdCounter:
    """Hands out increasing branch ids, safe to share between threads.

    One instance is owned by the test process entry point (the session-scoped
    ``branch_counter`` fixture) and passed to every place that mints a
    :class:`~renovate_config.branches.naming.FeatureBranchName`. Combined with
    the wall-clock timestamp in the branch name, this keeps concurrently
    running test cases from minting the same branch.

    Example:
        >>> counter = BranchIdCounter()
        >>> counter.next_id()
        '1'
        >>> counter.next_id()
        '2'
    """

    def __init__(self, start: int = 0) -> None:
        """Initialize the counter.

        Args:
            start: Last id considered taken; the first call returns start + 1
        """
        self._value = start
        self._lock = threading.Lock()

    def next_id(self) -> str:
        """Increment the counter and return the new value as a string id."""
        with self._lock:
            self._value += 1
            return str(self._value)
