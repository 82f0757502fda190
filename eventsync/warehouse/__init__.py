# ==============================================================================
# Warehouse -> Durable Sync
# ==============================================================================
"""
Day-at-a-time sync of the raw-event warehouse export into the durable store.
"""

from eventsync.warehouse.job import SyncStage, WarehouseSyncJob, parse_sync_date
from eventsync.warehouse.queries import render_query
from eventsync.warehouse.transform import (
    TRANSFORMS,
    micros_to_datetime,
    page_path_from_location,
)

__all__ = [
    "SyncStage",
    "TRANSFORMS",
    "WarehouseSyncJob",
    "micros_to_datetime",
    "page_path_from_location",
    "parse_sync_date",
    "render_query",
]
