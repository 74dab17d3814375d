"""Providers for external services."""

from renovate_config.providers.github_rest import GitHubRestProvider, get_shared_provider

__all__ = ["GitHubRestProvider", "get_shared_provider"]
