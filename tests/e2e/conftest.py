"""Pytest fixtures for end-to-end tests.

These tests push a scratch branch to the real test repository, run renovate
against it and assert on the pull requests it opens. Set environment
variables before running:
- GH_TOKEN: GitHub token with contents, pull request and actions access to
  the test repository
- RENOVATE_TEST_*: optional settings overrides (see HarnessSettings)

Run with: pytest tests/e2e -m e2e
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator

import httpx
import pytest

from renovate_config.branches.counter import BranchIdCounter
from renovate_config.config.settings import HarnessSettings
from renovate_config.harness.context import RenovateTestContext
from renovate_config.utils.logging_config import configure_logging


@pytest.fixture(scope="session")
def e2e_settings() -> HarnessSettings:
    """Harness settings from RENOVATE_TEST_* variables."""
    return HarnessSettings()


@pytest.fixture(scope="session")
def github_token(e2e_settings: HarnessSettings) -> str | None:
    """GitHub token from environment."""
    return os.environ.get(e2e_settings.token_env_var)


@pytest.fixture(scope="session")
def github_available(e2e_settings: HarnessSettings, github_token: str | None) -> bool:
    """Check if GitHub is reachable and the token can see the test repository."""
    if not github_token:
        return False
    try:
        response = httpx.get(
            f"{e2e_settings.github_api_url}/repos/{e2e_settings.repository.full_name}",
            headers={"Authorization": f"Bearer {github_token}"},
            timeout=10.0,
        )
        return response.status_code == 200
    except httpx.RequestError:
        return False


@pytest.fixture(autouse=True)
def require_github(github_available: bool, e2e_settings: HarnessSettings) -> None:
    """Skip test if the test repository is not reachable."""
    if not github_available:
        pytest.skip(f"{e2e_settings.repository.full_name} not reachable (check {e2e_settings.token_env_var})")
    configure_logging(e2e_settings.log_level, json_format=False)


@pytest.fixture
async def renovate_context(
    e2e_settings: HarnessSettings,
    branch_counter: BranchIdCounter,
) -> AsyncGenerator[RenovateTestContext, None]:
    """A scratch repository on a fresh temporary feature branch."""
    async with await RenovateTestContext.create(e2e_settings, branch_counter) as context:
        yield context
