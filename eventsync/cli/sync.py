# ==============================================================================
# Sync Commands
# ==============================================================================
"""
Local -> durable reconciliation commands.
"""

from typing import Annotated

import typer

from eventsync.cli.shared import (
    C,
    EXIT_FAILURE,
    exit_already_running,
    fail,
    get_service,
    ok,
    print_json,
    warn,
)
from eventsync.core.errors import JobAlreadyRunning


def sync_run(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Copy local-only sessions into the durable store now.

    Exits 1 if the durable store is unavailable or the run fails,
    2 if a sync is already running.

    Examples:
        eventsync sync run
        eventsync sync run --json
    """
    service = get_service()
    try:
        result = service.run_sync()
    except JobAlreadyRunning as e:
        exit_already_running(e)
    finally:
        service.close()

    if json_output:
        print_json(result.model_dump())
    elif result.success:
        ok(f"Sync complete: {result.synced} synced, {result.errors} errors")
        if result.errors:
            warn("Some sessions failed; see the log for their ids")
    else:
        fail("Sync failed; see 'eventsync sync status' for the last error")

    if not result.success:
        raise typer.Exit(EXIT_FAILURE)


def sync_status(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show the persisted reconciler state.

    Examples:
        eventsync sync status
    """
    state = get_service().sync_status()
    if json_output:
        print_json(state.to_json_dict())
        return

    print()
    print(f"  {C.BOLD}Last sync:{C.RESET}        {state.last_sync_timestamp.isoformat()}")
    print(f"  {C.BOLD}Last session:{C.RESET}     {state.last_synced_session_id or '-'}")
    print(f"  {C.BOLD}Total synced:{C.RESET}     {state.total_synced:,}")
    if state.last_error:
        print(f"  {C.BOLD}Last error:{C.RESET}       {C.BRIGHT_RED}{state.last_error}{C.RESET}")
    else:
        print(f"  {C.BOLD}Last error:{C.RESET}       {C.DIM}none{C.RESET}")
    print()
