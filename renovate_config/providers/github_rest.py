"""GitHub provider implementation using PyGithub and REST API.

Covers the handful of calls the harness makes against the scratch
repository: listing and deleting branches, reading renovate's pull requests
and commits, and reading workflow runs for branch policy checks.
"""

import asyncio
from collections.abc import Callable
from typing import TypeVar

import structlog
from github import Auth, Github, GithubException  # type: ignore[import-not-found]
from github.Branch import Branch as GHBranch  # type: ignore[import-not-found]
from github.Commit import Commit as GHCommit  # type: ignore[import-not-found]
from github.PullRequest import PullRequest as GHPullRequest  # type: ignore[import-not-found]
from github.Repository import Repository as GHRepository  # type: ignore[import-not-found]
from github.WorkflowRun import WorkflowRun as GHWorkflowRun  # type: ignore[import-not-found]

from renovate_config.config.settings import HarnessSettings
from renovate_config.models.domain import Branch, Commit, PullRequest, WorkflowRun

log = structlog.get_logger(__name__)

T = TypeVar("T")

# 404 when the ref lookup fails, 422 when it vanished between lookup and delete.
_MISSING_REF_STATUSES = (404, 422)


async def _run_sync(func: Callable[[], T]) -> T:
    """Run a synchronous function in a thread pool.

    This prevents blocking the event loop when calling synchronous
    PyGithub methods.
    """
    return await asyncio.to_thread(func)


class GitHubRestProvider:
    """GitHub implementation using PyGithub library."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
    ):
        """Initialize GitHub provider.

        Args:
            token: GitHub personal access token or App token
            owner: Repository owner (user or organization)
            repo: Repository name
            base_url: GitHub API base URL (for GitHub Enterprise)
        """
        self.token = token.strip() if token else token
        self.owner = owner
        self.repo = repo
        self.base_url = base_url.rstrip("/")
        self._client: Github | None = None
        self._repo: GHRepository | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def repository(self) -> GHRepository:
        """The connected PyGithub repository.

        Raises:
            ConnectionError: If connect() has not been awaited yet
        """
        if self._repo is None:
            raise ConnectionError(f"GitHub provider for {self.full_name} is not connected")
        return self._repo

    async def connect(self) -> None:
        """Initialize GitHub client."""

        def _connect() -> tuple[Github, GHRepository]:
            client = Github(auth=Auth.Token(self.token), base_url=self.base_url)
            repo = client.get_repo(self.full_name)
            return client, repo

        self._client, self._repo = await _run_sync(_connect)
        log.info(
            "github_connected",
            base_url=self.base_url,
            owner=self.owner,
            repo=self.repo,
        )

    async def disconnect(self) -> None:
        """Close GitHub client."""
        if self._client:
            await _run_sync(self._client.close)
            self._client = None
            self._repo = None

    async def list_branches(self) -> list[Branch]:
        """List every branch of the repository."""
        log.debug("list_branches", repo=self.full_name)

        try:
            gh_branches = await _run_sync(lambda: list(self.repository.get_branches()))
            return [self._convert_branch(b) for b in gh_branches]

        except GithubException as e:
            log.error("github_list_branches_failed", error=str(e))
            raise

    async def delete_branch(self, branch_name: str) -> bool:
        """Delete ``refs/heads/<branch_name>``.

        Returns:
            True if the branch was deleted, False if it no longer existed
            (typically another run's sweep got there first)
        """
        log.info("delete_branch", branch=branch_name)

        try:
            await _run_sync(lambda: self.repository.get_git_ref(f"heads/{branch_name}").delete())
            return True

        except GithubException as e:
            if e.status in _MISSING_REF_STATUSES:
                log.info("github_branch_not_found", branch=branch_name, status=e.status)
                return False
            log.error("github_delete_branch_failed", branch=branch_name, error=str(e))
            raise

    async def get_pull_requests(self, base: str) -> list[PullRequest]:
        """Get open pull requests targeting ``base``."""
        log.info("get_pull_requests", base=base)

        try:
            gh_prs = await _run_sync(lambda: list(self.repository.get_pulls(state="open", base=base)))
            return [self._convert_pull_request(pr) for pr in gh_prs]

        except GithubException as e:
            log.error("github_get_pull_requests_failed", base=base, error=str(e))
            raise

    async def get_commits(self, sha: str) -> list[Commit]:
        """Get the commit history reachable from a branch name or SHA."""
        log.info("get_commits", sha=sha)

        try:
            gh_commits = await _run_sync(lambda: list(self.repository.get_commits(sha=sha)))
            return [self._convert_commit(c) for c in gh_commits]

        except GithubException as e:
            log.error("github_get_commits_failed", sha=sha, error=str(e))
            raise

    async def get_workflow_runs(self, head_sha: str) -> list[WorkflowRun]:
        """Get workflow runs triggered for a commit.

        Workflow runs are read instead of check runs because fine-grained
        tokens cannot be granted the checks scope.
        """
        log.debug("get_workflow_runs", head_sha=head_sha)

        try:
            gh_runs = await _run_sync(lambda: list(self.repository.get_workflow_runs(head_sha=head_sha)))
            return [self._convert_workflow_run(r) for r in gh_runs]

        except GithubException as e:
            log.error("github_get_workflow_runs_failed", head_sha=head_sha, error=str(e))
            raise

    def _convert_branch(self, gh_branch: GHBranch) -> Branch:
        """Convert GitHub Branch to our Branch model."""
        return Branch(name=gh_branch.name, sha=gh_branch.commit.sha)

    def _convert_pull_request(self, gh_pr: GHPullRequest) -> PullRequest:
        """Convert GitHub PullRequest to our PullRequest model."""
        return PullRequest(
            number=gh_pr.number,
            title=gh_pr.title,
            body=gh_pr.body or "",
            base=gh_pr.base.ref,
            head=gh_pr.head.ref,
            labels=[label.name for label in gh_pr.labels],
            auto_merge_enabled=gh_pr.raw_data.get("auto_merge") is not None,
        )

    def _convert_commit(self, gh_commit: GHCommit) -> Commit:
        """Convert GitHub Commit to our Commit model."""
        return Commit(sha=gh_commit.sha, message=gh_commit.commit.message or "")

    def _convert_workflow_run(self, gh_run: GHWorkflowRun) -> WorkflowRun:
        """Convert GitHub WorkflowRun to our WorkflowRun model."""
        return WorkflowRun(id=gh_run.id, status=gh_run.status, conclusion=gh_run.conclusion)


_shared_provider: GitHubRestProvider | None = None
_shared_provider_lock = asyncio.Lock()


async def get_shared_provider(settings: HarnessSettings, token: str) -> GitHubRestProvider:
    """Return the process-wide provider, connecting it on first use.

    The instance lives until the process exits and is never disconnected.
    """
    global _shared_provider

    async with _shared_provider_lock:
        if _shared_provider is None:
            provider = GitHubRestProvider(
                token=token,
                owner=settings.repository.owner,
                repo=settings.repository.name,
                base_url=settings.github_api_url,
            )
            await provider.connect()
            _shared_provider = provider

    return _shared_provider
