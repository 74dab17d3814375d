"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime

import pytest

from renovate_config.branches.counter import BranchIdCounter
from renovate_config.config.settings import HarnessSettings
from renovate_config.models.domain import Branch


@pytest.fixture(scope="session")
def branch_counter() -> BranchIdCounter:
    """Process-wide branch id source shared by every test."""
    return BranchIdCounter()


@pytest.fixture
def settings() -> HarnessSettings:
    """Harness settings with fast polling for tests."""
    return HarnessSettings(
        repository={"owner": "test-owner", "name": "test-repo"},
        poll_interval=0.01,
    )


@pytest.fixture
def reference_time() -> datetime:
    """Creation time of the sample branches below."""
    return datetime(2025, 4, 3, 20, 0, 16, tzinfo=UTC)


@pytest.fixture
def sample_branches() -> list[Branch]:
    """Remote branches as listed by the GitHub provider."""
    return [
        Branch(name="main", sha="aaa111"),
        Branch(name="renovate/major-microsoft", sha="bbb222"),
        Branch(name="feature/20250403200016_1", sha="ccc333"),
        Branch(name="renovate/20250403200016_1_major-microsoft", sha="ddd444"),
        Branch(name="feature/20250403220016_2", sha="eee555"),
        Branch(name="renovate/20250403220016_2_dotnet-monorepo", sha="fff666"),
    ]
