# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the ports of the sync pipeline.

Components receive these as constructor arguments so they can be exercised
with in-memory fakes and fake clocks.
"""

from eventsync.base.cache import Cache
from eventsync.base.geo import GeoLookupClient
from eventsync.base.repositories import (
    VIEW_CONFLICT_KEYS,
    VIEW_CTA_CLICKS,
    VIEW_PAGEVIEWS,
    VIEW_SESSIONS,
    VIEW_VIDEO_EVENTS,
    DurableStore,
    EventWarehouse,
    LocalEventStore,
)
from eventsync.base.sync_state import SyncStateStore

__all__ = [
    "Cache",
    "DurableStore",
    "EventWarehouse",
    "GeoLookupClient",
    "LocalEventStore",
    "SyncStateStore",
    "VIEW_CONFLICT_KEYS",
    "VIEW_CTA_CLICKS",
    "VIEW_PAGEVIEWS",
    "VIEW_SESSIONS",
    "VIEW_VIDEO_EVENTS",
]
