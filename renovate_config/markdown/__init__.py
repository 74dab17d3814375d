"""Markdown helpers for reading renovate pull request bodies."""

from renovate_config.markdown.tables import extract_package_updates, inner_text, parse_first_table

__all__ = ["extract_package_updates", "inner_text", "parse_first_table"]
