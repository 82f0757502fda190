# ==============================================================================
# Retention Commands
# ==============================================================================
"""
Local dataset retention commands.
"""

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from eventsync.cli.shared import C, exit_already_running, get_service, ok, print_json
from eventsync.core.errors import JobAlreadyRunning


def _print_stats(stats: dict, title: str) -> None:
    console = Console()
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Dataset", justify="left")
    table.add_column("Size (MB)", justify="right")
    table.add_column("Records", justify="right")
    table.add_column("Last modified", justify="left")

    for name, info in stats["datasets"].items():
        count = info["record_count"]
        table.add_row(
            name,
            f"{info['size_mb']:.2f}",
            f"{count:,}" if count is not None else "N/A",
            info["last_modified"],
        )

    print()
    console.print(table)
    print(f"  {C.BOLD}Files:{C.RESET}  {stats['total_files']}")
    print(f"  {C.BOLD}Total:{C.RESET}  {stats['total_size_mb']:.2f} MB")
    print()


def retention_run(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Enforce retention on every dataset and prune old backups.

    Examples:
        eventsync retention run
    """
    service = get_service()
    try:
        stats = service.run_retention()
    except JobAlreadyRunning as e:
        exit_already_running(e)

    if json_output:
        print_json(stats)
        return
    ok("Retention cycle complete")
    _print_stats(stats, "Local datasets after cleanup")


def retention_stats(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show size and record count of each local dataset.

    Examples:
        eventsync retention stats --json
    """
    stats = get_service().retention_stats()
    if json_output:
        print_json(stats)
        return
    _print_stats(stats, "Local datasets")
