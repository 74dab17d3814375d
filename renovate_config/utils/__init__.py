"""Shared utilities: structured logging setup and async subprocess helpers."""

from renovate_config.utils.async_subprocess import run_command
from renovate_config.utils.logging_config import configure_logging

__all__ = ["configure_logging", "run_command"]
