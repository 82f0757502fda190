# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared constants, output helpers and service construction for CLI commands.
"""

import json
import logging

import typer

from eventsync.core.errors import JobAlreadyRunning
from eventsync.service import MaintenanceService, build_service
from eventsync.utils.config import get_settings

# ==============================================================================
# Constants
# ==============================================================================

EXIT_FAILURE = 1
EXIT_ALREADY_RUNNING = 2

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

NOISY_LOGGERS = ("urllib3", "apscheduler", "google", "uvicorn.access")


# ==============================================================================
# ANSI Colors and Icons
# ==============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    WHITE = "\033[37m"
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


class Icons:
    """Status icons using Unicode symbols."""

    CHECK = "✓"
    CROSS = "✗"
    WARN = "!"
    BULLET = "•"
    ARROW = "→"


C, I = Colors, Icons


# ==============================================================================
# Helpers
# ==============================================================================


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for a CLI invocation."""
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_service() -> MaintenanceService:
    """Build the maintenance service from settings."""
    return build_service(get_settings())


def print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def ok(message: str) -> None:
    print(f"{C.BRIGHT_GREEN}{I.CHECK} {message}{C.RESET}")


def warn(message: str) -> None:
    print(f"{C.BRIGHT_YELLOW}{I.WARN} {message}{C.RESET}")


def fail(message: str) -> None:
    print(f"{C.BRIGHT_RED}{I.CROSS} {message}{C.RESET}")


def exit_already_running(error: JobAlreadyRunning) -> None:
    """Report a guarded job that is already running and exit with code 2."""
    warn(str(error))
    raise typer.Exit(EXIT_ALREADY_RUNNING)
