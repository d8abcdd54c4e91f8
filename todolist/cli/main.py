"""CLI main entry point"""

import logging
import sqlite3
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from todolist import __version__
from todolist.config import load_settings
from todolist.core.errors import StartupFatal
from todolist.logging_setup import setup_logging

console = Console(stderr=True)
logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="todolist")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML settings file (TODOLIST_CONFIG overrides it)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]):
    """todolist-backend - task list service with metrics and health"""
    try:
        settings = load_settings(config_path)
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    setup_logging(settings.log_level)
    ctx.obj = settings


@cli.command()
@click.pass_obj
def serve(settings):
    """Apply migrations, then serve the task API and the metrics listener."""
    from todolist.cli.serve import run_servers
    from todolist.core.startup import run_startup_gate
    from todolist.metrics.registry import MetricsRegistry

    metrics = MetricsRegistry()
    try:
        store = run_startup_gate(settings, metrics)
    except StartupFatal as e:
        logger.critical(e.message)
        console.print(f"[red]✗ Startup aborted: {e.message}[/red]")
        raise SystemExit(1)

    run_servers(settings, store, metrics)


@cli.command()
@click.option(
    "--db-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Database path (defaults to TODOLIST_DB_PATH)",
)
@click.pass_obj
def migrate(settings, db_path: Optional[Path]):
    """Apply pending schema migrations.

    Examples:
        todolist migrate
        todolist migrate --db-path /tmp/tasks.db
    """
    from todolist.store import ensure_migrations, init_db
    from todolist.store.migrations import OUTCOME_ALREADY_CURRENT, MigrationError

    db_path = db_path or settings.db_path
    try:
        init_db(db_path)
        result = ensure_migrations(db_path)
    except (MigrationError, OSError, sqlite3.Error) as e:
        console.print(f"[red]✗ Migration failed: {e}[/red]")
        raise click.Abort()

    if result.outcome == OUTCOME_ALREADY_CURRENT:
        console.print(f"[green]✅ Already current (v{result.to_version})[/green]")
    else:
        console.print(
            f"[green]✅ Applied {result.applied} migration(s): "
            f"v{result.from_version} → v{result.to_version}[/green]"
        )


@cli.command()
def migrations():
    """List available migration files."""
    from todolist.store.migrations import list_migrations

    info = list_migrations()
    table = Table(title=f"Migrations (latest: v{info['latest']})")
    table.add_column("Version")
    table.add_column("Description")
    table.add_column("File")
    for version, description, filepath in info["migrations"]:
        table.add_row(f"v{version}", description, filepath.name)
    Console().print(table)


def main():
    cli()


if __name__ == "__main__":
    main()
