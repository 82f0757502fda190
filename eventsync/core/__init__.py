# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Pure domain logic with no external dependencies.

This module contains:
- Domain models (SessionRecord, SyncState, GeoData, results)
- Device classification heuristic
- Idempotent key derivation for warehouse rows
- Error types

All code here is framework-agnostic and easily unit-testable.
"""

from eventsync.core.device import DeviceCategory, classify_device
from eventsync.core.errors import (
    CapabilityMissing,
    DurableStoreUnavailable,
    EventSyncError,
    GeoLookupError,
    JobAlreadyRunning,
    LocalStoreError,
    WarehouseSyncError,
    WarehouseTableNotFound,
)
from eventsync.core.idempotency import (
    cta_click_key,
    hash_id,
    pageview_key,
    session_key,
    video_event_key,
)
from eventsync.core.models import (
    GeoData,
    SessionRecord,
    SyncResult,
    SyncState,
    WarehouseSyncResult,
)

__all__ = [
    # Device
    "DeviceCategory",
    "classify_device",
    # Errors
    "CapabilityMissing",
    "DurableStoreUnavailable",
    "EventSyncError",
    "GeoLookupError",
    "JobAlreadyRunning",
    "LocalStoreError",
    "WarehouseSyncError",
    "WarehouseTableNotFound",
    # Keys
    "cta_click_key",
    "hash_id",
    "pageview_key",
    "session_key",
    "video_event_key",
    # Models
    "GeoData",
    "SessionRecord",
    "SyncResult",
    "SyncState",
    "WarehouseSyncResult",
]
