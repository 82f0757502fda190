# ==============================================================================
# Eventsync Pipeline Utilities
# ==============================================================================
"""
Shared utilities for the sync pipeline.

This module exports configuration and file helpers for use throughout the pipeline.
"""

from eventsync.utils.config import (
    GeoSettings,
    LocalStoreSettings,
    PostgresSettings,
    ReconcilerSettings,
    RetentionSettings,
    SchedulerSettings,
    Settings,
    ValkeySettings,
    WarehouseSettings,
    get_settings,
)
from eventsync.utils.files import read_json, write_json_atomic

__all__ = [
    # Config
    "GeoSettings",
    "LocalStoreSettings",
    "PostgresSettings",
    "ReconcilerSettings",
    "RetentionSettings",
    "SchedulerSettings",
    "Settings",
    "ValkeySettings",
    "WarehouseSettings",
    "get_settings",
    # Files
    "read_json",
    "write_json_atomic",
]
