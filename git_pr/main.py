"""git-pr CLI."""

import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler

from git_pr.app import App
from git_pr.errors import GitPrError, UserCancelled
from git_pr.providers.dry_run import DryRunGit, DryRunGitHub
from git_pr.providers.git import SubprocessGit
from git_pr.providers.github import RestGitHub
from git_pr.settings import TAGS_FILE, Config, EnvSettings, load_config, resolve_config_dir, write_default_config
from git_pr.tags import TagHistory
from git_pr.ui import TerminalUI

app = typer.Typer(
    help="Open a GitHub PR from the current branch and keep 'Related PRs' in sync across PRs sharing a tag.",
    add_completion=False,
)

EXIT_CANCELLED = 130


def _package_version() -> str:
    try:
        return version("git-pr")
    except PackageNotFoundError:
        return "unknown"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"git-pr {_package_version()}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, show_time=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_app(config: Config, env: EnvSettings, config_dir: Path, dry_run: bool) -> App:
    git = SubprocessGit()
    github = RestGitHub(env, api_url=config.github.api_url)
    if dry_run:
        git, github = DryRunGit(git), DryRunGitHub(github)
    history = TagHistory.load(config_dir / TAGS_FILE, limit=config.tags.history_size)
    return App(config, git, github, TerminalUI(), history, dry_run=dry_run)


@app.command()
def main(
    update_only: Annotated[
        bool, typer.Option("--update-only", "-u", help="Only refresh the Related PRs section of existing PRs")
    ] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", "-d", help="Print what would be created or edited without doing it")
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config directory (default ~/.config/git-pr, or GIT_PR_CONFIG)"),
    ] = None,
    init: Annotated[bool, typer.Option("--init", help="Write a default config.yml and exit")] = False,
    force: Annotated[bool, typer.Option("--force", help="With --init, overwrite an existing config.yml")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
    show_version: Annotated[
        bool | None,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """Create a PR for the current branch, then sync related PRs."""
    _setup_logging(verbose)
    env = EnvSettings()
    config_dir = resolve_config_dir(config, env)

    try:
        if init:
            path = write_default_config(config_dir, force=force)
            rprint(f"[green]✓[/green] Wrote {path}")
            return

        settings = load_config(config_dir, env)
        application = build_app(settings, env, config_dir, dry_run)
        result = application.update_only() if update_only else application.create()
    except UserCancelled:
        typer.echo("Cancelled.", err=True)
        raise typer.Exit(EXIT_CANCELLED)
    except GitPrError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(1)

    if result.report and result.report.warnings:
        rprint(f"[yellow]Finished with {len(result.report.warnings)} warning(s).[/yellow]")
    if dry_run:
        planned = [*getattr(application.git, "planned", []), *getattr(application.github, "planned", [])]
        rprint(f"[dim]Dry run: {len(planned)} change(s) described, nothing was modified.[/dim]")
