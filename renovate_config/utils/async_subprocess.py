"""Async subprocess utilities.

Provides non-blocking execution of the external tools the harness drives
(``git``, ``gh``, ``npx``, ``docker``) so that concurrently running test cases
do not stall the event loop.

Key Features:
    - Non-blocking execution compatible with asyncio
    - Extra environment variables layered on top of the parent environment
    - Optional check mode that raises on non-zero exit codes
    - Captured stdout/stderr echoed to the structured log line by line

Example:
    >>> from renovate_config.utils.async_subprocess import run_command
    >>> stdout, stderr, code = await run_command("git", "status", cwd="/repo")
    >>> if code == 0:
    ...     print(stdout)

Thread Safety:
    These functions are safe to call concurrently from multiple async tasks.
    Each call creates an independent subprocess with no shared state.
"""

import asyncio
import os
import subprocess
from collections.abc import Mapping
from pathlib import Path

import structlog

log = structlog.get_logger(__name__)


async def run_command(
    *args: str,
    cwd: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    check: bool = True,
    timeout: float | None = None,
) -> tuple[str, str, int]:
    """Run a command asynchronously without shell interpolation.

    Args:
        *args: Command and arguments as separate strings. The first argument
            is the executable, subsequent arguments are passed to it.
        cwd: Working directory for command execution. If None, uses the
            current working directory of the parent process.
        env: Extra environment variables. They are added to (and override)
            the parent process environment rather than replacing it.
        check: If True (default), raise CalledProcessError when the command
            returns a non-zero exit code.
        timeout: Maximum seconds to wait for command completion. If exceeded,
            the process is killed and TimeoutError is raised. None means
            wait indefinitely.

    Returns:
        Tuple of (stdout, stderr, return_code) where stdout and stderr are
        decoded UTF-8 strings (with replacement for invalid bytes).

    Raises:
        subprocess.CalledProcessError: If check=True and command returns
            non-zero. The exception includes stdout, stderr, and return code.
        TimeoutError: If timeout is exceeded. The process is killed
            before this exception is raised.
        FileNotFoundError: If the command executable is not found.

    Example:
        >>> stdout, _, _ = await run_command(
        ...     "git", "-C", repo_path, "init", "--initial-branch=main",
        ... )

        >>> # Don't raise on non-zero exit
        >>> _, _, code = await run_command("gh", "auth", "status", check=False)
    """
    process_env = None
    if env:
        process_env = {**os.environ, **env}

    log.debug("command_started", executable=args[0], cwd=str(cwd) if cwd else None)

    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        env=process_env,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(),
            timeout=timeout,
        )
    except TimeoutError:
        process.kill()
        await process.wait()
        raise

    stdout = (stdout_bytes or b"").decode("utf-8", errors="replace")
    stderr = (stderr_bytes or b"").decode("utf-8", errors="replace")

    for line in stdout.splitlines():
        log.debug("command_stdout", executable=args[0], line=line)
    for line in stderr.splitlines():
        log.debug("command_stderr", executable=args[0], line=line)

    if check and process.returncode != 0:
        log.error("command_failed", executable=args[0], returncode=process.returncode)
        raise subprocess.CalledProcessError(
            process.returncode,
            args,
            stdout,
            stderr,
        )

    return stdout, stderr, process.returncode or 0
