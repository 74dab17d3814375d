"""
Configuration system using Pydantic for type-safe settings management.

Settings cover the scratch repository the end-to-end tests run against, how
the renovate engine is launched, and how long the harness waits and keeps
branches around. Every field has a default, so the harness runs without any
configuration file; values can be overridden from a YAML file or from
``RENOVATE_TEST_*`` environment variables (nested fields use ``__``, e.g.
``RENOVATE_TEST_REPOSITORY__NAME``).
"""

from __future__ import annotations

import os
import re
from datetime import timedelta
from pathlib import Path
from urllib.parse import urlsplit

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from renovate_config.exceptions import ConfigurationError


class RepositoryConfig(BaseModel):
    """Scratch repository that renovate runs against."""

    owner: str = Field(default="workleap", description="Repository owner/organization")
    name: str = Field(default="renovate-config-test", description="Repository name")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class GitIdentityConfig(BaseModel):
    """Author identity for the seed commit pushed to the feature branch."""

    user_name: str = Field(default="IDP ScaffoldIt", description="git user.name")
    user_email: str = Field(default="idp@workleap.com", description="git user.email")


class HarnessSettings(BaseSettings):
    """End-to-end harness settings."""

    model_config = SettingsConfigDict(
        env_prefix="RENOVATE_TEST_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    git: GitIdentityConfig = Field(default_factory=GitIdentityConfig)
    github_api_url: str = Field(default="https://api.github.com", description="GitHub REST API base URL")
    token_env_var: str = Field(default="GH_TOKEN", description="Environment variable holding the GitHub token")
    ruleset_file: str = Field(
        default="default.json",
        description="Ruleset copied into the scratch repository as renovate.json, relative to the repository root",
    )
    renovate_image: str = Field(default="renovate/renovate:latest", description="Container image used without npx")
    renovate_labels: list[str] = Field(default_factory=lambda: ["renovate"], description="Labels renovate adds")
    seed_commit_message: str = Field(
        default="IDP ScaffoldIt automated test",
        description="Message of the commit pushed before renovate runs, excluded from commit snapshots",
    )
    poll_interval: float = Field(default=1.0, gt=0, description="Seconds between workflow run polls")
    check_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for branch policy checks; None waits indefinitely",
    )
    max_branch_age_minutes: int = Field(
        default=120, ge=1, description="Age after which temporary branches are swept"
    )
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def max_branch_age(self) -> timedelta:
        return timedelta(minutes=self.max_branch_age_minutes)

    @property
    def github_web_url(self) -> str:
        """Web (and git) base URL matching ``github_api_url``.

        ``https://api.github.com`` maps to ``https://github.com``; an Enterprise
        API URL such as ``https://ghe.example.com/api/v3`` maps to its host.
        """
        parts = urlsplit(self.github_api_url)
        host = parts.netloc.removeprefix("api.")
        return f"{parts.scheme}://{host}"

    @property
    def repository_url(self) -> str:
        return f"{self.github_web_url}/{self.repository.full_name}"

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> HarnessSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} syntax for environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            HarnessSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing required fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except Exception as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        Supports two syntaxes:
        - ${VAR_NAME} - Required environment variable (raises if not set)
        - ${VAR_NAME:-default} - Optional with default value

        YAML comment lines are left untouched.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
