# ==============================================================================
# Session Commands
# ==============================================================================
"""
One-shot session migration into the durable store.
"""

from typing import Annotated, Optional

import typer

from eventsync.cli.shared import (
    C,
    EXIT_FAILURE,
    exit_already_running,
    get_service,
    ok,
    print_json,
    warn,
)
from eventsync.core.errors import JobAlreadyRunning


def sessions_migrate(
    batch_size: Annotated[
        Optional[int], typer.Option("--batch-size", "-b", help="Sessions per upsert", min=1)
    ] = None,
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Copy every local session into the durable store, ignoring existing ones.

    Examples:
        eventsync sessions migrate
        eventsync sessions migrate -y --batch-size 500
    """
    if not confirm:
        typer.confirm("Copy all local sessions to the durable store?", abort=True)

    service = get_service()
    try:
        result = service.migrate_sessions(batch_size)
    except JobAlreadyRunning as e:
        exit_already_running(e)
    finally:
        service.close()

    if json_output:
        print_json(result.model_dump())
    else:
        ok(f"Migrated {result.migrated:,} of {result.total:,} sessions")
        print(f"  {C.BOLD}Errors:{C.RESET}   {result.errors:,}")
        print(f"  {C.BOLD}Skipped:{C.RESET}  {result.skipped:,} (missing session_id)")
        if result.errors:
            warn("Some batches failed; rerun to retry them")

    if result.errors:
        raise typer.Exit(EXIT_FAILURE)
