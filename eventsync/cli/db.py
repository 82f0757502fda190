# ==============================================================================
# Database Commands
# ==============================================================================
"""
Durable store schema bootstrap.
"""

import typer

from eventsync.cli.shared import EXIT_FAILURE, fail, ok
from eventsync.utils.config import get_settings


def db_init() -> None:
    """Create the durable store schema, tables and functions.

    Safe to run repeatedly.

    Examples:
        eventsync db init
    """
    from eventsync.utils.db import ensure_schema

    settings = get_settings()
    try:
        ensure_schema(settings)
    except Exception as e:
        fail(f"Schema initialization failed: {e}")
        raise typer.Exit(EXIT_FAILURE)
    ok(f"Schema '{settings.postgres.schema_name}' is ready")
