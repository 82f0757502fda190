# ==============================================================================
# Warehouse Commands
# ==============================================================================
"""
Warehouse -> durable sync commands.
"""

from typing import Annotated, Optional

import typer

from eventsync.cli.shared import (
    C,
    EXIT_FAILURE,
    exit_already_running,
    fail,
    get_service,
    ok,
    print_json,
)
from eventsync.core.errors import CapabilityMissing, JobAlreadyRunning, WarehouseSyncError


def warehouse_sync(
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Day to sync (YYYY-MM-DD), default yesterday UTC"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Sync one day of the warehouse export into the durable store.

    Exits 1 if the run fails, so it can be used from cron.

    Examples:
        eventsync warehouse sync
        eventsync warehouse sync --date 2024-05-01
    """
    service = get_service()
    try:
        result = service.run_warehouse_sync(date)
    except JobAlreadyRunning as e:
        exit_already_running(e)
    except ValueError:
        raise typer.BadParameter(f"Invalid date '{date}', expected YYYY-MM-DD", param_hint="--date")
    except (CapabilityMissing, WarehouseSyncError) as e:
        if json_output:
            print_json({"success": False, "error": str(e)})
        else:
            fail(str(e))
        raise typer.Exit(EXIT_FAILURE)
    finally:
        service.close()

    if json_output:
        print_json({"success": True, **result.model_dump()})
        return

    ok(f"Warehouse sync complete for {result.sync_date} ({result.table})")
    for view, count in result.records_processed.items():
        print(f"  {C.BOLD}{view}:{C.RESET} {count:,}")
    if not result.returning_users_marked:
        print(f"  {C.DIM}Returning users not marked (function not installed){C.RESET}")
