"""CLI entry point for the renovate-config maintenance commands."""

import asyncio
import sys
from datetime import UTC, datetime, timedelta

import click
import structlog
from pydantic import ValidationError

from renovate_config.branches.cleanup import find_expired_branches, sweep_expired_branches
from renovate_config.branches.naming import FeatureBranchName, RenovateBranchPrefix, TemporaryBranchName
from renovate_config.config.settings import HarnessSettings
from renovate_config.credentials.github_token import resolve_github_token
from renovate_config.exceptions import ConfigurationError, RenovateConfigError
from renovate_config.providers.github_rest import GitHubRestProvider
from renovate_config.utils.async_subprocess import run_command
from renovate_config.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option("--config", type=click.Path(), default=None, help="Path to a YAML settings file")
@click.option("--log-level", default=None, help="Logging level (defaults to the configured level)")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """renovate-config: maintenance commands for the renovate ruleset and its test repository."""
    try:
        settings = HarnessSettings.from_yaml(config) if config else HarnessSettings()
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)
    except ValidationError as e:
        click.echo(f"Error: Invalid settings: {e}", err=True)
        sys.exit(1)

    configure_logging(log_level or settings.log_level)
    ctx.obj = {"settings": settings}


@cli.command()
@click.option(
    "--max-age-minutes",
    type=click.IntRange(min=1),
    default=None,
    help="Override the configured maximum branch age",
)
@click.option("--dry-run", is_flag=True, help="List expired branches without deleting them")
@click.pass_context
def sweep(ctx: click.Context, max_age_minutes: int | None, dry_run: bool) -> None:
    """Delete expired temporary branches from the test repository."""
    settings: HarnessSettings = ctx.obj["settings"]
    max_age = timedelta(minutes=max_age_minutes) if max_age_minutes else settings.max_branch_age

    try:
        branch_names = asyncio.run(_sweep(settings, max_age, dry_run))
    except RenovateConfigError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("sweep_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    verb = "Would delete" if dry_run else "Deleted"
    for name in branch_names:
        click.echo(f"{verb} {name}")
    click.echo(f"{verb} {len(branch_names)} branch(es) from {settings.repository.full_name}")


async def _sweep(settings: HarnessSettings, max_age: timedelta, dry_run: bool) -> list[str]:
    token = await resolve_github_token(settings.token_env_var)
    provider = GitHubRestProvider(
        token=token,
        owner=settings.repository.owner,
        repo=settings.repository.name,
        base_url=settings.github_api_url,
    )
    await provider.connect()
    try:
        if dry_run:
            return await find_expired_branches(provider, max_age=max_age)
        return await sweep_expired_branches(provider, max_age=max_age)
    finally:
        await provider.disconnect()


def _describe(kind: str, identity: TemporaryBranchName | None, max_age: timedelta) -> None:
    if identity is None:
        click.echo(f"{kind}: no match")
        return
    expired = "yes" if identity.has_expired(datetime.now(UTC), max_age) else "no"
    click.echo(f"{kind}: {identity}")
    click.echo(f"  created at: {identity.created_at.isoformat()}")
    click.echo(f"  id: {identity.id}")
    click.echo(f"  expired: {expired}")


@cli.command("parse-branch")
@click.argument("branch_name")
@click.pass_context
def parse_branch(ctx: click.Context, branch_name: str) -> None:
    """Show how a branch name is understood by the temporary branch scheme."""
    settings: HarnessSettings = ctx.obj["settings"]

    feature_branch = FeatureBranchName.parse(branch_name)
    renovate_branch = RenovateBranchPrefix.parse(branch_name)

    _describe("feature", feature_branch, settings.max_branch_age)
    _describe("renovate", renovate_branch, settings.max_branch_age)

    if feature_branch is None and renovate_branch is None:
        sys.exit(1)


@cli.command()
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
def validate(files: tuple[str, ...]) -> None:
    """Validate ruleset files with renovate-config-validator (default: default.json)."""
    targets = list(files) or ["default.json"]

    try:
        stdout, stderr, code = asyncio.run(
            run_command(
                "npx", "--yes", "--package", "renovate", "--", "renovate-config-validator", *targets, check=False
            )
        )
    except FileNotFoundError:
        click.echo("Error: npx is not installed", err=True)
        sys.exit(1)

    if stdout:
        click.echo(stdout.rstrip())
    if stderr:
        click.echo(stderr.rstrip(), err=True)
    sys.exit(code)
