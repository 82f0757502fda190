# ==============================================================================
# Serve Command
# ==============================================================================
"""
Run the operator API, optionally with the daily scheduler.
"""

from typing import Annotated, Optional

import typer

from eventsync.cli.shared import get_service
from eventsync.utils.config import get_settings


def serve(
    host: Annotated[Optional[str], typer.Option("--host", help="Bind address")] = None,
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Bind port")] = None,
    no_scheduler: Annotated[
        bool, typer.Option("--no-scheduler", help="Serve the API without the daily jobs")
    ] = False,
) -> None:
    """Serve the operator HTTP API with uvicorn.

    Examples:
        eventsync serve
        eventsync serve --port 9000 --no-scheduler
    """
    import uvicorn

    from eventsync.api.ops import create_app
    from eventsync.scheduler import MaintenanceScheduler

    settings = get_settings()
    service = get_service()

    scheduler = None
    if settings.ops_api.start_scheduler and not no_scheduler:
        scheduler = MaintenanceScheduler(service, settings.scheduler)

    app = create_app(service, scheduler)
    uvicorn.run(
        app,
        host=host or settings.ops_api.host,
        port=port or settings.ops_api.port,
        log_level=settings.log_level.lower(),
    )
