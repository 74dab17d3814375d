"""GitHub token resolution.

The token comes from an environment variable (``GH_TOKEN`` by default, which is
what CI injects) or, on a developer machine, from the GitHub CLI's stored
login. Resolution happens before any network call so a missing token fails
the run immediately with an actionable message.
"""

import os
import subprocess

import structlog

from renovate_config.exceptions import CredentialError
from renovate_config.utils.async_subprocess import run_command

log = structlog.get_logger(__name__)


async def resolve_github_token(env_var: str = "GH_TOKEN") -> str:
    """Return a GitHub token from the environment or ``gh auth token``.

    Args:
        env_var: Environment variable checked first

    Returns:
        The token, stripped of surrounding whitespace

    Raises:
        CredentialError: If neither source yields a token
    """
    token = (os.getenv(env_var) or "").strip()
    if token:
        log.debug("github_token_from_environment", env_var=env_var)
        return token

    try:
        stdout, _, _ = await run_command("gh", "auth", "token")
        token = stdout.strip()
    except FileNotFoundError:
        log.debug("gh_cli_not_installed")
    except subprocess.CalledProcessError as e:
        log.debug("gh_auth_token_failed", returncode=e.returncode)

    if not token:
        raise CredentialError(
            "GitHub token not found",
            suggestion=f"Set {env_var} or run `gh auth login` to authenticate",
        )

    log.debug("github_token_from_gh_cli")
    return token
