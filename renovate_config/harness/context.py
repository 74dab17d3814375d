"""End-to-end test context for the renovate ruleset.

Each test builds a scratch repository on its own temporary feature branch,
runs renovate against it and asserts on what renovate produced::

    async with await RenovateTestContext.create(settings, branch_counter) as context:
        context.add_file("global.json", '{"sdk": {"version": "5.0.100"}}')
        await context.push_files_on_temporary_branch()
        await context.run_renovate()
        await context.assert_pull_requests(\"\"\"
            - Title: chore(deps): update dotnet monorepo to redacted
              ...
            \"\"\")

Renovate is told to open every branch under this run's renovate prefix, so
concurrent runs never see each other's branches. Branches are not deleted
when a run ends; the sweep at the start of a later run removes them once they
have expired, which leaves a failed run's state available for inspection.
"""

from __future__ import annotations

import asyncio
import json
import shutil
import tempfile
from pathlib import Path
from types import TracebackType
from urllib.parse import urlsplit

import structlog

from renovate_config.branches.cleanup import sweep_expired_branches
from renovate_config.branches.counter import BranchIdCounter
from renovate_config.branches.naming import FeatureBranchName, RenovateBranchPrefix
from renovate_config.config.settings import HarnessSettings
from renovate_config.credentials.github_token import resolve_github_token
from renovate_config.exceptions import GitOperationError
from renovate_config.harness.snapshots import (
    assert_snapshot,
    commit_infos,
    pull_request_infos,
    render_commits,
    render_pull_requests,
    scrub_commit_line,
    scrub_pull_request_line,
)
from renovate_config.providers.github_rest import GitHubRestProvider, get_shared_provider
from renovate_config.utils.async_subprocess import run_command

log = structlog.get_logger(__name__)

CODEOWNERS = "* @workleap/internal-developer-platform\n"

_WORKFLOW_TEMPLATE = """\
name: CI
on:
    pull_request:
        branches:
            - "*"
    push:
        branches:
            - "renovate/**"

jobs:
    build:
        runs-on: ubuntu-latest
        steps:
            - name: {step_name}
              run: {command}
"""

SUCCESSFUL_WORKFLOW = _WORKFLOW_TEMPLATE.format(step_name="Dummy successful step", command='echo "Hello world"')
FAILING_WORKFLOW = _WORKFLOW_TEMPLATE.format(step_name="Dummy failing step", command="exit 1")


def find_repository_root(start: Path | None = None) -> Path:
    """Return the closest ancestor of ``start`` (default: cwd) holding ``.git``.

    Raises:
        GitOperationError: If no enclosing git repository exists
    """
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / ".git").exists():
            return candidate
    raise GitOperationError(f"Repository root not found from {current}")


def resolve_ruleset_path(filename: str) -> Path:
    """Locate a ruleset file; relative names are taken from the repository root."""
    path = Path(filename)
    if path.is_absolute():
        return path
    return find_repository_root() / path


class RenovateTestContext:
    """Scratch repository, temporary branch and GitHub access for one test."""

    def __init__(
        self,
        settings: HarnessSettings,
        provider: GitHubRestProvider,
        token: str,
        repository_directory: Path,
        target_branch: FeatureBranchName,
    ) -> None:
        self.settings = settings
        self.provider = provider
        self.repository_directory = repository_directory
        self.target_branch = target_branch
        self.renovate_prefix = RenovateBranchPrefix.from_feature_branch(target_branch)
        self._token = token
        self._log = log.bind(branch=target_branch.name)

    @classmethod
    async def create(
        cls,
        settings: HarnessSettings,
        counter: BranchIdCounter,
        provider: GitHubRestProvider | None = None,
        token: str | None = None,
    ) -> RenovateTestContext:
        """Mint a feature branch and initialize a scratch repository on it.

        Args:
            settings: Harness settings
            counter: Process-wide branch id source
            provider: GitHub provider; the shared one is used when omitted
            token: GitHub token; resolved from the environment when omitted

        Raises:
            CredentialError: If no GitHub token is available
        """
        if token is None:
            token = await resolve_github_token(settings.token_env_var)
        if provider is None:
            provider = await get_shared_provider(settings, token)

        await run_command("gh", "auth", "status", env={"GH_TOKEN": token})

        target_branch = FeatureBranchName.create(counter)
        log.info("target_branch_minted", branch=target_branch.name)

        repository_directory = Path(tempfile.mkdtemp(prefix="renovate-config-test-"))
        try:
            await run_command(
                "git", "-C", str(repository_directory), "init", f"--initial-branch={target_branch.name}"
            )
            shutil.copyfile(resolve_ruleset_path(settings.ruleset_file), repository_directory / "renovate.json")
        except Exception:
            shutil.rmtree(repository_directory, ignore_errors=True)
            raise

        return cls(settings, provider, token, repository_directory, target_branch)

    async def __aenter__(self) -> RenovateTestContext:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def add_file(self, path: str, content: str) -> Path:
        """Write a file into the scratch repository, creating parent folders."""
        file_path = self.repository_directory / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        return file_path

    def add_codeowners_file(self) -> Path:
        return self.add_file("CODEOWNERS", CODEOWNERS)

    def add_successful_workflow_file(self) -> Path:
        """Add a CI workflow that passes, satisfying the branch policy."""
        return self.add_file(".github/workflows/ci.yml", SUCCESSFUL_WORKFLOW)

    def add_failing_workflow_file(self) -> Path:
        """Add a CI workflow that always fails, blocking auto-merge."""
        return self.add_file(".github/workflows/ci.yml", FAILING_WORKFLOW)

    def use_ruleset_file(self, filename: str) -> None:
        """Replace the scratch repository's renovate.json with another ruleset."""
        shutil.copyfile(resolve_ruleset_path(filename), self.repository_directory / "renovate.json")

    @property
    def push_url(self) -> str:
        web = urlsplit(self.settings.github_web_url)
        return f"{web.scheme}://x-access-token:{self._token}@{web.netloc}/{self.settings.repository.full_name}"

    async def push_files_on_temporary_branch(self) -> None:
        """Sweep stale branches, then commit the scratch files and push them."""
        await self.cleanup_repository()

        repo_path = str(self.repository_directory)
        branch = self.target_branch.name
        identity = self.settings.git

        await run_command("git", "-C", repo_path, "add", ".")
        await run_command(
            "git",
            "-C",
            repo_path,
            "-c",
            f"user.email={identity.user_email}",
            "-c",
            f"user.name={identity.user_name}",
            "commit",
            "--message",
            self.settings.seed_commit_message,
        )
        await run_command("git", "-C", repo_path, "push", self.push_url, f"{branch}:{branch}")
        self._log.info("temporary_branch_pushed")

    def renovate_environment(self) -> dict[str, str]:
        """Environment that points renovate at this run's branches only."""
        return {
            "LOG_LEVEL": "debug",
            "RENOVATE_PRINT_CONFIG": "true",
            "RENOVATE_TOKEN": self._token,
            "RENOVATE_ENDPOINT": self.settings.github_api_url,
            "RENOVATE_BRANCH_PREFIX": self.renovate_prefix.prefix,
            "RENOVATE_BASE_BRANCHES": self.target_branch.name,
            "RENOVATE_USE_BASE_BRANCH_CONFIG": "merge",
            "RENOVATE_RECREATE_WHEN": "always",
            "RENOVATE_PR_HOURLY_LIMIT": "0",
            "RENOVATE_PR_CONCURRENT_LIMIT": "0",
            "RENOVATE_BRANCH_CONCURRENT_LIMIT": "0",
            "RENOVATE_LABELS": json.dumps(self.settings.renovate_labels),
            "RENOVATE_INHERIT_CONFIG_FILE_NAME": "not-renovate.json",
            "RENOVATE_REPOSITORIES": json.dumps([self.settings.repository_url]),
        }

    async def run_renovate(self) -> None:
        """Run renovate with npx, or in a container when npx is not installed."""
        env = self.renovate_environment()
        repository = self.settings.repository.full_name

        try:
            await run_command(
                "npx", "renovate", repository, "--base-dir", str(self.repository_directory), env=env
            )
            return
        except FileNotFoundError:
            self._log.info("npx_not_found_using_docker", image=self.settings.renovate_image)

        docker_args = ["docker", "run", "--rm"]
        for key, value in env.items():
            docker_args.extend(["-e", f"{key}={value}"])
        docker_args.extend(["--pull", "always", self.settings.renovate_image, "renovate", repository])

        await run_command(*docker_args)

    async def assert_pull_requests(self, expected: str) -> None:
        """Compare renovate's open pull requests with ``expected``."""
        pull_requests = await self.provider.get_pull_requests(self.target_branch.name)
        actual = render_pull_requests(pull_request_infos(pull_requests))
        assert_snapshot(actual, expected, scrub_pull_request_line)

    async def assert_commits(self, expected: str) -> None:
        """Compare commits on the feature branch (minus the seed commit) with ``expected``."""
        commits = await self.provider.get_commits(self.target_branch.name)
        actual = render_commits(commit_infos(commits, self.settings.seed_commit_message))
        assert_snapshot(actual, expected, scrub_commit_line)

    async def wait_for_branch_policy_checks(self) -> None:
        """Wait until workflow runs on every branch renovate opened for this run complete.

        Polls every ``poll_interval`` seconds. Without ``check_timeout`` a
        check that never completes blocks forever.

        Raises:
            TimeoutError: If ``check_timeout`` is set and elapses
        """
        for branch in await self.provider.list_branches():
            renovate_branch = RenovateBranchPrefix.parse(branch.name)
            if renovate_branch is not None and renovate_branch.belongs_to(self.target_branch):
                self._log.info("waiting_for_workflow_runs", renovate_branch=branch.name, sha=branch.sha)
                await self._wait_for_workflow_runs(branch.sha)

    async def _wait_for_workflow_runs(self, commit_sha: str) -> None:
        async def poll() -> None:
            while True:
                runs = await self.provider.get_workflow_runs(commit_sha)
                if runs and all(run.is_completed for run in runs):
                    return
                await asyncio.sleep(self.settings.poll_interval)

        if self.settings.check_timeout is None:
            await poll()
        else:
            await asyncio.wait_for(poll(), timeout=self.settings.check_timeout)

    async def cleanup_repository(self) -> list[str]:
        """Delete expired temporary branches of the scratch repository."""
        return await sweep_expired_branches(self.provider, max_age=self.settings.max_branch_age)

    async def aclose(self) -> None:
        """Remove the local scratch repository and sweep expired branches."""
        shutil.rmtree(self.repository_directory, ignore_errors=True)
        await self.cleanup_repository()
