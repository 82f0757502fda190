# ==============================================================================
# Analytics Domain Models
# ==============================================================================
"""
Pydantic models for sessions, sync state and geolocation results.

These models are used for:
- Validating records read from the local JSON datasets
- Mapping local sessions to durable-store rows
- Persisting reconciler progress between runs

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from eventsync.core.device import classify_device


class SessionRecord(BaseModel):
    """
    A visitor session as written to the local sessions dataset.

    ``session_id`` is the stable identity shared with the durable store.
    Optional fields default the way the durable row mapping expects.
    """

    session_id: str = Field(..., min_length=1, description="Opaque session identifier")
    user_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    referrer: str | None = None
    language: str | None = None
    country: str | None = None
    country_iso2: str | None = None
    country_iso3: str | None = None
    city: str | None = None
    region: str | None = None
    screen_resolution: str | None = None
    timezone: str | None = None
    page_views: int | None = None
    duration: float | None = None
    is_bot: bool = False
    is_test_data: bool = False
    created_at: datetime = Field(..., description="When the session was first recorded")
    updated_at: datetime | None = None

    model_config = {"extra": "ignore"}

    @property
    def has_location(self) -> bool:
        """True when the record already carries a usable country."""
        return bool(self.country) and self.country != "Unknown"

    def to_db_record(self) -> dict:
        """Convert session to the durable ``analytics_sessions`` row format."""
        last_seen = self.updated_at or self.created_at
        return {
            "session_id": self.session_id,
            "user_id": self.user_id or None,
            "ip_address": self.ip_address or "0.0.0.0",
            "user_agent": self.user_agent or "",
            "referrer": self.referrer or "",
            "language": self.language or "en-US",
            "country": self.country or "Unknown",
            "country_name": self.country or "Unknown",
            "country_iso2": self.country_iso2 or None,
            "country_iso3": self.country_iso3 or None,
            "city": self.city or "Unknown",
            "region": self.region or None,
            "device_category": classify_device(self.user_agent or "").value,
            "screen_resolution": self.screen_resolution or "",
            "timezone": self.timezone or "UTC",
            "first_seen_at": self.created_at,
            "last_seen_at": last_seen,
            "session_duration": self.duration or 0,
            "duration": self.duration or 0,
            "page_count": self.page_views or 1,
            "page_views": self.page_views or 0,
            "is_bounce": False,
            "is_returning": False,
            "is_bot": self.is_bot,
            "is_test_data": self.is_test_data,
            "created_at": self.created_at,
            "updated_at": last_seen,
        }


class SyncState(BaseModel):
    """
    Progress of the local -> durable reconciler, persisted between runs.

    Serialized with camelCase keys so existing state files stay readable.
    """

    last_sync_timestamp: datetime = Field(
        default_factory=lambda: datetime.fromtimestamp(0, tz=UTC),
        alias="lastSyncTimestamp",
    )
    last_synced_session_id: str | None = Field(default=None, alias="lastSyncedSessionId")
    total_synced: int = Field(default=0, ge=0, alias="totalSynced")
    last_error: str | None = Field(default=None, alias="lastError")

    model_config = {"populate_by_name": True}

    def to_json_dict(self) -> dict:
        """Serialize with camelCase keys and ISO timestamps."""
        return self.model_dump(mode="json", by_alias=True)


class SyncResult(BaseModel):
    """Outcome of one reconciler run."""

    success: bool
    synced: int = 0
    errors: int = 0


class GeoData(BaseModel):
    """
    Location resolved for an IPv4 address.

    Attributes:
        ts: Epoch seconds when the lookup succeeded
        source: Service that produced the data
    """

    country: str | None = None
    country_code: str | None = None
    city: str | None = None
    region: str | None = None
    region_code: str | None = None
    ts: float
    source: str = "ipapi"


class WarehouseSyncResult(BaseModel):
    """Outcome of one warehouse day sync."""

    sync_date: str
    table: str
    records_processed: dict[str, int] = Field(default_factory=dict)
    returning_users_marked: bool = False
