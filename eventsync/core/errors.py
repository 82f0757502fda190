# ==============================================================================
# Error Types
# ==============================================================================
"""
Exceptions raised across the sync pipeline.
"""


class EventSyncError(Exception):
    """Base class for pipeline errors."""


class DurableStoreUnavailable(EventSyncError):
    """The durable store did not answer the health check."""


class LocalStoreError(EventSyncError):
    """A local JSON dataset could not be read or written."""


class GeoLookupError(EventSyncError):
    """The geolocation service failed, timed out, or reported an error."""


class CapabilityMissing(EventSyncError):
    """An optional durable-store capability is not installed."""


class WarehouseTableNotFound(EventSyncError):
    """The day-partitioned export table does not exist."""


class WarehouseSyncError(EventSyncError):
    """A warehouse sync run failed.

    Attributes:
        stage: Stage the run was in when it failed
        sync_date: Day being synced (YYYY-MM-DD)
    """

    def __init__(self, message: str, stage: str, sync_date: str):
        super().__init__(message)
        self.stage = stage
        self.sync_date = sync_date


class JobAlreadyRunning(EventSyncError):
    """A job was triggered while a previous run still holds its guard."""

    def __init__(self, job_name: str):
        super().__init__(f"Job '{job_name}' is already running")
        self.job_name = job_name
