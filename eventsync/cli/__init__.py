# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for the eventsync pipeline.

Commands are organized into separate modules and registered in eventsync.app:
- shared.py: Output helpers, exit codes, service construction
- sync.py, retention.py, warehouse.py, sessions.py, geo.py, db.py: job commands
- status.py: Status overview
- serve.py: Operator API server
"""

from eventsync.cli.shared import (
    EXIT_ALREADY_RUNNING,
    EXIT_FAILURE,
    C,
    Colors,
    I,
    Icons,
    configure_logging,
    get_service,
)

__all__ = [
    "EXIT_ALREADY_RUNNING",
    "EXIT_FAILURE",
    "C",
    "Colors",
    "I",
    "Icons",
    "configure_logging",
    "get_service",
]
