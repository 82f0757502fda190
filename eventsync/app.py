# ==============================================================================
# Eventsync CLI
# ==============================================================================
"""
Command-line interface for the analytics event sync pipeline.

Usage:
    eventsync --help
    eventsync status
    eventsync sync run
    eventsync sync status
    eventsync retention run
    eventsync retention stats
    eventsync warehouse sync --date 2024-05-01
    eventsync sessions migrate -y
    eventsync geo lookup 8.8.8.8
    eventsync db init
    eventsync serve
"""

import os
from typing import Annotated, Optional

import typer

if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="eventsync",
    help="Analytics event sync and enrichment pipeline CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def main_callback(
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", help="Override LOG_LEVEL (DEBUG, INFO, ...)")
    ] = None,
) -> None:
    from eventsync.cli.shared import configure_logging

    configure_logging(log_level)


sync_app = typer.Typer(
    help="Local -> durable session sync",
    no_args_is_help=True,
)
app.add_typer(sync_app, name="sync")

from eventsync.cli.sync import sync_run, sync_status

sync_app.command("run")(sync_run)
sync_app.command("status")(sync_status)

retention_app = typer.Typer(
    help="Local dataset retention",
    no_args_is_help=True,
)
app.add_typer(retention_app, name="retention")

from eventsync.cli.retention import retention_run, retention_stats

retention_app.command("run")(retention_run)
retention_app.command("stats")(retention_stats)

warehouse_app = typer.Typer(
    help="Warehouse -> durable sync",
    no_args_is_help=True,
)
app.add_typer(warehouse_app, name="warehouse")

from eventsync.cli.warehouse import warehouse_sync

warehouse_app.command("sync")(warehouse_sync)

sessions_app = typer.Typer(
    help="Session migration",
    no_args_is_help=True,
)
app.add_typer(sessions_app, name="sessions")

from eventsync.cli.sessions import sessions_migrate

sessions_app.command("migrate")(sessions_migrate)

geo_app = typer.Typer(
    help="IP geolocation",
    no_args_is_help=True,
)
app.add_typer(geo_app, name="geo")

from eventsync.cli.geo import geo_lookup

geo_app.command("lookup")(geo_lookup)

db_app = typer.Typer(
    help="Durable store schema",
    no_args_is_help=True,
)
app.add_typer(db_app, name="db")

from eventsync.cli.db import db_init

db_app.command("init")(db_init)

from eventsync.cli.status import show_status

app.command("status")(show_status)

from eventsync.cli.serve import serve

app.command("serve")(serve)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
