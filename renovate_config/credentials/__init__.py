"""Credential resolution."""

from renovate_config.credentials.github_token import resolve_github_token

__all__ = ["resolve_github_token"]
