# ==============================================================================
# Status Command
# ==============================================================================
"""
Pipeline health overview: durable store, sync state, local datasets, geo cache.
"""

from typing import Annotated

import typer

from eventsync.cli.shared import C, I, get_service, print_json


def _badge(healthy: bool) -> str:
    if healthy:
        return f"{C.BRIGHT_GREEN}{I.CHECK} reachable{C.RESET}"
    return f"{C.BRIGHT_RED}{I.CROSS} unreachable{C.RESET}"


def show_status(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show pipeline status.

    Examples:
        eventsync status
        eventsync status --json
    """
    service = get_service()
    try:
        health = service.health()
        status = service.status()
    finally:
        service.close()

    if json_output:
        print_json({"health": health, **status})
        return

    sync = status["sync"]
    retention = status["retention"]
    geo = status["geo"]

    print()
    print(f"  {C.BOLD}Durable store{C.RESET}   {_badge(health['durable_store'])}")
    if not health["durable_store"]:
        print(f"                  {C.DIM}{health.get('error')}{C.RESET}")
    print()
    print(f"  {C.BOLD}Sync{C.RESET}")
    print(f"    Last sync      {sync['lastSyncTimestamp']}")
    print(f"    Total synced   {sync['totalSynced']:,}")
    print(f"    Last error     {sync['lastError'] or '-'}")
    print()
    print(f"  {C.BOLD}Local datasets{C.RESET}")
    print(f"    Files          {retention['total_files']}")
    print(f"    Total size     {retention['total_size_mb']:.2f} MB")
    print()
    print(f"  {C.BOLD}Geo cache{C.RESET}")
    print(f"    Entries        {geo['cache_size']}")
    print(f"    Lookups left   {geo['rate_limit_remaining']}")
    print()
    print(f"  {C.BOLD}Warehouse{C.RESET}       {'configured' if status['warehouse_configured'] else 'not configured'}")
    for job, started in status["running"].items():
        print(f"  {C.BRIGHT_YELLOW}{I.BULLET} {job} running since {started}{C.RESET}")
    print()
