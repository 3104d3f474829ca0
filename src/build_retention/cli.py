"""
Build Retention CLI - Command-line interface.

Run batch cleanups, publish release folders, and serve the REST API.
"""

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from build_retention.config import load_config, storage_root
from build_retention.core.exceptions import ConfigurationError, RetentionError, format_exception
from build_retention.logging_config import configure_logging
from build_retention.policy.models import CandidateStatus, PolicyConfig, RetentionResult
from build_retention.repository.filesystem import FilesystemRepository
from build_retention.repository.models import RepoPath
from build_retention.triggers import RetentionTriggers

app = typer.Typer(
    name="build-retention",
    help="Build Retention - keep the latest builds, archive or delete the rest",
    no_args_is_help=True,
)
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", help="Policy YAML file")
StorageRootOption = typer.Option(None, "--storage-root", "-s", help="Repository storage root")

STATUS_STYLES = {
    CandidateStatus.DELETED: "red",
    CandidateStatus.ARCHIVED: "yellow",
    CandidateStatus.KEPT: "green",
    CandidateStatus.WOULD_DELETE: "dim red",
    CandidateStatus.WOULD_ARCHIVE: "dim yellow",
    CandidateStatus.FAILED: "bold red",
}


def _load(config_path: Optional[Path], dry_run: bool = False) -> PolicyConfig:
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {format_exception(e)}[/red]")
        raise typer.Exit(1)
    if dry_run and not config.dry_run:
        config = config.model_copy(update={"dry_run": True})
    return config


def _repository(root: Optional[Path]) -> FilesystemRepository:
    return FilesystemRepository(root or storage_root())


def _outcome_table(title: str, result: RetentionResult) -> Table:
    table = Table(title=title)
    table.add_column("Build", style="cyan")
    table.add_column("Outcome")
    table.add_column("Detail", style="dim")
    for outcome in result.outcomes:
        style = STATUS_STYLES.get(outcome.status, "white")
        table.add_row(
            outcome.path,
            f"[{style}]{outcome.status.value}[/{style}]",
            outcome.target or outcome.message or "",
        )
    return table


@app.command()
def cleanup(
    repos: List[str] = typer.Argument(..., help="Repository keys to clean up"),
    config_path: Optional[Path] = ConfigOption,
    root: Optional[Path] = StorageRootOption,
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Report without deleting or moving"),
):
    """Apply retention to the named repositories."""
    configure_logging()
    config = _load(config_path, dry_run)
    triggers = RetentionTriggers(config, _repository(root))

    console.print(
        Panel.fit(
            f"[bold blue]Build Retention[/bold blue]\n"
            f"Repositories: {', '.join(repos)}\n"
            f"Keep latest: {config.keep_latest}  Keep days: {config.keep_days}\n"
            f"Dry run: {config.dry_run}",
        )
    )

    try:
        report = triggers.run_cleanup(repos)
    except RetentionError as e:
        console.print(f"[red]{format_exception(e)}[/red]")
        raise typer.Exit(1)

    for repo_key, result in report.results.items():
        action = report.actions[repo_key].value
        console.print(_outcome_table(f"{repo_key} ({action})", result))
        console.print(
            f"Deleted: {result.deleted_count}  Archived: {result.archived_count}  "
            f"Kept: {result.kept_count}"
        )
    for repo_key in report.skipped_repos:
        console.print(f"[yellow]No action defined for repository {repo_key}[/yellow]")

    if not report.success:
        for result in report.results.values():
            for error in result.errors:
                console.print(f"[red]{error}[/red]")
        raise typer.Exit(1)


@app.command()
def publish(
    repo_key: str = typer.Argument(..., help="Release repository"),
    path: str = typer.Argument(..., help="Path of the new release folder"),
    config_path: Optional[Path] = ConfigOption,
    root: Optional[Path] = StorageRootOption,
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Report without deleting or moving"),
):
    """Create a release folder and run the item-created trigger for it."""
    configure_logging()
    config = _load(config_path, dry_run)
    repository = _repository(root)
    triggers = RetentionTriggers(config, repository)

    try:
        item = repository.create_folder(RepoPath(repo_key=repo_key, path=path))
        outcome = triggers.on_item_created(item)
    except RetentionError as e:
        console.print(f"[red]{format_exception(e)}[/red]")
        raise typer.Exit(1)

    if outcome is None:
        console.print(f"[yellow]{item.repo_path} does not qualify for release retention[/yellow]")
        return

    if outcome.snapshot.deleted:
        for snapshot in outcome.snapshot.deleted:
            console.print(f"Snapshot removed: [red]{snapshot}[/red]")
    else:
        console.print(f"No snapshot found for {outcome.snapshot.snapshot_path}")
    console.print(_outcome_table(f"Retention under {item.parent}", outcome.retention))

    if not outcome.success:
        for error in outcome.snapshot.errors + outcome.retention.errors:
            console.print(f"[red]{error}[/red]")
        raise typer.Exit(1)


@app.command()
def init(
    config_path: Optional[Path] = ConfigOption,
    root: Optional[Path] = StorageRootOption,
):
    """Create the configured repositories under the storage root."""
    config = _load(config_path)
    repository = _repository(root)
    keys = list(config.release_repos) + list(config.snapshot_repos)
    if config.archive_repo:
        keys.append(config.archive_repo)
    for repo_key in keys:
        repository.add_repository(repo_key)
        console.print(f"[green]Repository ready:[/green] {repo_key}")


@app.command("show-config")
def show_config(config_path: Optional[Path] = ConfigOption):
    """Show the effective policy configuration."""
    config = _load(config_path)

    table = Table(title="Retention Policy")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Release repos", ", ".join(config.release_repos) or "-")
    table.add_row("Snapshot repos", ", ".join(config.snapshot_repos) or "-")
    table.add_row("Archive repo", config.archive_repo or "-")
    table.add_row("Keep latest", str(config.keep_latest))
    table.add_row("Keep days", str(config.keep_days))
    table.add_row("Selected projects", ", ".join(config.select_projects) or "(none)")
    table.add_row("Cleanup root", config.cleanup_root or "/")
    table.add_row("Dry run", str(config.dry_run))
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", "-H", help="Bind address"),
    port: int = typer.Option(8080, "--port", "-p", help="Bind port"),
    config_path: Optional[Path] = ConfigOption,
    root: Optional[Path] = StorageRootOption,
):
    """Serve the cleanup and event REST API."""
    import uvicorn

    from build_retention.api.app import create_app
    from build_retention.repository.events import StorageEventBus

    configure_logging()
    config = _load(config_path)
    repository = FilesystemRepository(root or storage_root(), event_bus=StorageEventBus())
    uvicorn.run(create_app(config, repository), host=host, port=port, log_level="info")


@app.command()
def version():
    """Show Build Retention version."""
    from build_retention import __version__

    console.print(f"Build Retention v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
