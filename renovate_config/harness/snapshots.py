"""Snapshot rendering and comparison for renovate's pull requests and commits.

Pull requests and commits are rendered into a small indented text format and
compared with a hand-written expected block::

    - Title: chore(deps): update dotnet monorepo to redacted
      Labels:
        - renovate
      PackageUpdatesInfos:
        - Package: dotnet-sdk
          Type: dotnet-sdk
          Update: patch
      IsAutoMergeEnabled: false

Package versions change every week, so rendered lines are scrubbed before
comparison: everything from the word ``to`` onwards becomes ``to redacted``.
All of the following become ``update dependency system.text.json to redacted``::

    update dependency system.text.json to 8.0.5 [security]
    update dependency system.text.json to 8.0.5 [security] (#9834)
    update dependency system.text.json to 8.0.5 (#2903)
    update dependency system.text.json to 8.0.5

Commit lines additionally have parenthesised groups (pull request numbers)
replaced, so ``update dependency system.text.json (#2903)`` is stable too.
"""

import difflib
import re
import textwrap
from collections.abc import Callable, Iterable

from renovate_config.exceptions import SnapshotMismatchError
from renovate_config.markdown.tables import extract_package_updates
from renovate_config.models.domain import Commit, CommitInfo, PullRequest, PullRequestInfo

REDACTED = "to redacted"

_PULL_REQUEST_VERSION = re.compile(r"(\bto\b).*")
_COMMIT_VERSION = re.compile(r"(\bto\b).*|(\([^)]*\))")


def scrub_pull_request_line(line: str) -> str:
    return _PULL_REQUEST_VERSION.sub(REDACTED, line)


def scrub_commit_line(line: str) -> str:
    return _COMMIT_VERSION.sub(REDACTED, line)


def pull_request_infos(pull_requests: Iterable[PullRequest]) -> list[PullRequestInfo]:
    """Convert pull requests to snapshot records, ordered by title."""
    return [
        PullRequestInfo(
            title=pr.title,
            labels=sorted(pr.labels),
            package_updates=extract_package_updates(pr.body),
            is_auto_merge_enabled=pr.auto_merge_enabled,
        )
        for pr in sorted(pull_requests, key=lambda pr: pr.title)
    ]


def commit_infos(commits: Iterable[Commit], exclude_message: str | None = None) -> list[CommitInfo]:
    """Convert commits to snapshot records ordered by message.

    Args:
        commits: Commits reachable from the feature branch
        exclude_message: Message of the seed commit pushed by the harness
    """
    return sorted(
        (CommitInfo(message=c.message) for c in commits if c.message != exclude_message),
        key=lambda c: c.message,
    )


def _render_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_pull_requests(infos: Iterable[PullRequestInfo]) -> str:
    """Render pull request records as snapshot text."""
    lines: list[str] = []

    for info in infos:
        lines.append(f"- Title: {info.title}")

        if info.labels:
            lines.append("  Labels:")
            lines.extend(f"    - {label}" for label in info.labels)
        else:
            lines.append("  Labels: []")

        if info.package_updates:
            lines.append("  PackageUpdatesInfos:")
            for update in info.package_updates:
                fields = [("Package", update.package), ("Type", update.type), ("Update", update.update)]
                present = [(key, value) for key, value in fields if value is not None]
                if not present:
                    lines.append("    - {}")
                    continue
                for position, (key, value) in enumerate(present):
                    marker = "    - " if position == 0 else "      "
                    lines.append(f"{marker}{key}: {value}")
        else:
            lines.append("  PackageUpdatesInfos: []")

        lines.append(f"  IsAutoMergeEnabled: {_render_scalar(info.is_auto_merge_enabled)}")

    return "\n".join(lines) if lines else "[]"


def render_commits(infos: Iterable[CommitInfo]) -> str:
    """Render commit records as snapshot text.

    Multi-line messages are written as an indented block after ``|-``.
    """
    lines: list[str] = []

    for info in infos:
        message = info.message.rstrip()
        if "\n" not in message:
            lines.append(f"- Message: {message}")
            continue

        lines.append("- Message: |-")
        lines.extend(f"    {line}" if line.strip() else "" for line in message.splitlines())

    return "\n".join(lines) if lines else "[]"


def _normalize(text: str) -> list[str]:
    return [line.rstrip() for line in textwrap.dedent(text).strip("\n").splitlines()]


def assert_snapshot(
    actual: str,
    expected: str,
    scrubber: Callable[[str], str] | None = None,
) -> None:
    """Compare rendered ``actual`` text with a hand-written ``expected`` block.

    ``expected`` may be indented as a whole (it is dedented first). The
    scrubber is applied to each line of ``actual`` only; expected snapshots
    are written already scrubbed.

    Raises:
        SnapshotMismatchError: With a unified diff when the texts differ
    """
    actual_lines = _normalize(actual)
    if scrubber is not None:
        actual_lines = [scrubber(line) for line in actual_lines]
    expected_lines = _normalize(expected)

    if actual_lines == expected_lines:
        return

    diff = "\n".join(
        difflib.unified_diff(expected_lines, actual_lines, "expected", "actual", lineterm="")
    )
    raise SnapshotMismatchError("Snapshot does not match", diff)
