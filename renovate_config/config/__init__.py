"""Harness configuration."""

from renovate_config.config.settings import GitIdentityConfig, HarnessSettings, RepositoryConfig

__all__ = ["GitIdentityConfig", "HarnessSettings", "RepositoryConfig"]
