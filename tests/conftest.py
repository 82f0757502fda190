# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- fakeredis-backed ValkeyCache instances
- In-memory fakes for the durable store, warehouse, geo client and sync state
- A controllable clock
- A MaintenanceService wired entirely from fakes
"""

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest

from eventsync.base import (
    VIEW_CONFLICT_KEYS,
    VIEW_CTA_CLICKS,
    VIEW_PAGEVIEWS,
    VIEW_SESSIONS,
    VIEW_VIDEO_EVENTS,
    DurableStore,
    EventWarehouse,
    GeoLookupClient,
    SyncStateStore,
)
from eventsync.core.errors import CapabilityMissing, GeoLookupError
from eventsync.core.models import SyncState
from eventsync.enrichment import GeoResolver
from eventsync.infrastructure.cache import ValkeyCache
from eventsync.infrastructure.local_store import JsonFileEventStore
from eventsync.reconcile import Reconciler
from eventsync.retention import RetentionManager
from eventsync.service import MaintenanceService
from eventsync.utils.config import DatasetRetention
from eventsync.utils.rate_limiter import WindowRateLimiter

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=UTC)

GOOGLE_DNS = {
    "country": "United States",
    "country_code": "US",
    "city": "Mountain View",
    "region": "California",
    "region_code": "CA",
}


# ==============================================================================
# Fakes
# ==============================================================================


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGeoClient(GeoLookupClient):
    """Answers every lookup with the same location, or fails on demand."""

    def __init__(self, response: dict | None = None):
        self.response = response or GOOGLE_DNS
        self.calls: list[str] = []
        self.fail = False

    def lookup(self, ip: str) -> dict:
        self.calls.append(ip)
        if self.fail:
            raise GeoLookupError("timed out")
        return dict(self.response)


class MemorySyncStateStore(SyncStateStore):
    def __init__(self):
        self.state: SyncState | None = None
        self.saves = 0
        self.load_error: Exception | None = None
        self.save_error: Exception | None = None

    def load(self) -> SyncState:
        if self.load_error:
            raise self.load_error
        return self.state.model_copy() if self.state else SyncState()

    def save(self, state: SyncState) -> None:
        if self.save_error:
            raise self.save_error
        self.state = state.model_copy()
        self.saves += 1


class FakeDurableStore(DurableStore):
    """Dict-backed durable store with switchable failure modes."""

    def __init__(self, session_ids=()):
        self.tables: dict[str, dict[str, dict]] = {
            VIEW_SESSIONS: {sid: {"session_id": sid} for sid in session_ids},
            VIEW_PAGEVIEWS: {},
            VIEW_VIDEO_EVENTS: {},
            VIEW_CTA_CLICKS: {},
        }
        self.ping_error: Exception | None = None
        self.failing_ids: set[str] = set()
        self.fail_upsert_rows = False
        self.has_mark_returning = True
        self.marked_as_of: list[datetime] = []
        self.upsert_calls: list[tuple[str, int]] = []
        self.sync_runs: list[dict] = []
        self.closed = False

    @property
    def sessions(self) -> dict[str, dict]:
        return self.tables[VIEW_SESSIONS]

    def ping(self) -> None:
        if self.ping_error is not None:
            raise self.ping_error

    def list_session_ids(self) -> set[str]:
        return set(self.sessions)

    def upsert_session(self, row: dict, ignore_duplicates: bool = True) -> None:
        session_id = row["session_id"]
        if session_id in self.failing_ids:
            raise RuntimeError(f"row rejected: {session_id}")
        if ignore_duplicates and session_id in self.sessions:
            return
        self.sessions[session_id] = row

    def upsert_rows(self, view: str, rows: list[dict], ignore_duplicates: bool = False) -> int:
        if self.fail_upsert_rows:
            raise RuntimeError("upsert request failed")
        self.upsert_calls.append((view, len(rows)))
        key = VIEW_CONFLICT_KEYS[view]
        table = self.tables[view]
        for row in rows:
            if ignore_duplicates and row[key] in table:
                continue
            table[row[key]] = row
        return len(rows)

    def mark_returning_users(self, as_of: datetime) -> None:
        if not self.has_mark_returning:
            raise CapabilityMissing("mark_returning_users() is not installed")
        self.marked_as_of.append(as_of)

    def start_sync_run(self, sync_date: str) -> int | None:
        self.sync_runs.append({"sync_date": sync_date, "status": "running"})
        return len(self.sync_runs)

    def complete_sync_run(self, run_id, status, records_processed, error_details=None) -> None:
        self.sync_runs[run_id - 1].update(
            status=status, records_processed=dict(records_processed), error_details=error_details
        )

    def close(self) -> None:
        self.closed = True


class FakeWarehouse(EventWarehouse):
    """
    Serves canned rows per view for each day table.

    ``days`` maps a table name to {view: rows}. The view is recognized from
    the rendered SQL.
    """

    def __init__(self, days: dict[str, dict[str, list[dict]]] | None = None):
        self.days = days or {}
        self.queries: list[str] = []
        self.fail_on: str | None = None

    def table_ref(self, table_name: str) -> str:
        return f"`proj.analytics_1.{table_name}`"

    def table_exists(self, table_name: str) -> bool:
        return table_name in self.days

    def query(self, sql: str) -> list[dict]:
        self.queries.append(sql)
        view = _view_of(sql)
        if view == self.fail_on:
            raise RuntimeError(f"query for {view} failed")
        for table_name, views in self.days.items():
            if self.table_ref(table_name) in sql:
                return [dict(row) for row in views.get(view, [])]
        return []


def _view_of(sql: str) -> str:
    if "GROUP BY user_pseudo_id, ga_session_id" in sql:
        return VIEW_SESSIONS
    if "'video_start'" in sql:
        return VIEW_VIDEO_EVENTS
    if "event_name = 'cta_click'" in sql:
        return VIEW_CTA_CLICKS
    return VIEW_PAGEVIEWS


# ==============================================================================
# Helpers
# ==============================================================================


def make_session(session_id: str, created_at: datetime = NOW, **fields) -> dict:
    """Local session record as written by the tracking endpoint."""
    record = {
        "session_id": session_id,
        "created_at": created_at.isoformat(),
        "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
        "ip_address": "8.8.8.8",
        "country": "United States",
        "city": "Mountain View",
    }
    record.update(fields)
    return record


def sample_warehouse_day() -> dict[str, list[dict]]:
    """Export rows for one day: two sessions, pageviews, video events and a CTA click."""
    base = 1_715_299_200_000_000  # 2024-05-10T00:00:00Z in microseconds
    return {
        VIEW_SESSIONS: [
            {
                "user_pseudo_id": "u1",
                "ga_session_id": 111,
                "first_ts": base,
                "last_ts": base + 60_000_000,
                "country": "Germany",
                "city": "Berlin",
                "language": "de-de",
                "device_category": "desktop",
                "os": "Windows",
                "browser": "Chrome",
                "referrer": None,
            },
            {
                "user_pseudo_id": "u2",
                "ga_session_id": 222,
                "first_ts": base + 1_000_000,
                "last_ts": base + 2_000_000,
                "country": "France",
                "city": "Paris",
                "language": "fr-fr",
                "device_category": "mobile",
                "os": "iOS",
                "browser": "Safari",
                "referrer": "https://example.org/",
            },
        ],
        VIEW_PAGEVIEWS: [
            {
                "event_timestamp": base + i,
                "ga_session_id": 111,
                "user_pseudo_id": "u1",
                "page_location": f"https://example.com/page-{i}",
                "page_referrer": None,
                "page_title": f"Page {i}",
                "locale": "de",
            }
            for i in range(5)
        ],
        VIEW_VIDEO_EVENTS: [
            {
                "event_name": "video_start",
                "event_timestamp": base + 10,
                "ga_session_id": 111,
                "user_pseudo_id": "u1",
                "video_id": "v1",
                "video_title": "Intro",
                "gallery": "home",
                "player": "html5",
                "locale": "de",
                "current_time_seconds": 0.0,
                "progress_percent": None,
                "watch_time_seconds": None,
            },
            {
                "event_name": "video_complete",
                "event_timestamp": base + 20,
                "ga_session_id": 111,
                "user_pseudo_id": "u1",
                "video_id": "v1",
                "video_title": "Intro",
                "gallery": "home",
                "player": "html5",
                "locale": "de",
                "current_time_seconds": 90.5,
                "progress_percent": 100,
                "watch_time_seconds": 90.5,
            },
        ],
        VIEW_CTA_CLICKS: [
            {
                "event_timestamp": base + 30,
                "ga_session_id": None,
                "user_pseudo_id": "u2",
                "cta_id": "book-now",
                "page_path": "/pricing",
                "locale": "fr",
            }
        ],
    }


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture()
def fake_redis():
    """A clean fakeredis instance for each test.

    Uses decode_responses=True to match the real ValkeyCache behavior.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeRedis(server=server, decode_responses=True)
    yield client
    client.flushall()
    client.close()


@pytest.fixture()
def fake_cache(fake_redis):
    """A ValkeyCache wrapping fakeredis instead of a real server."""
    return ValkeyCache.from_client(fake_redis)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def geo_client():
    return FakeGeoClient()


@pytest.fixture()
def geo_resolver(geo_client, clock):
    """Resolver with a 5-per-60s limiter and no random sweeps."""
    limiter = WindowRateLimiter(limit=5, window_seconds=60, clock=clock)
    return GeoResolver(geo_client, rate_limiter=limiter, sweep_probability=0.0, clock=clock)


@pytest.fixture()
def durable_store():
    return FakeDurableStore()


@pytest.fixture()
def state_store():
    return MemorySyncStateStore()


@pytest.fixture()
def local_store(tmp_path):
    return JsonFileEventStore(tmp_path / "analytics-sessions.json")


@pytest.fixture()
def reconciler(local_store, durable_store, state_store):
    return Reconciler(
        local_store,
        durable_store,
        state_store,
        clock=lambda: NOW,
        sleep=lambda seconds: None,
    )


@pytest.fixture()
def retention_manager(tmp_path):
    datasets = {
        "analytics-views.json": DatasetRetention(max_records=1000, max_age_days=7, max_file_size_mb=0),
        "analytics-sessions.json": DatasetRetention(max_records=1000, max_age_days=7, max_file_size_mb=0),
    }
    return RetentionManager(tmp_path, datasets, clock=lambda: NOW)


@pytest.fixture()
def service(reconciler, retention_manager, geo_resolver, durable_store):
    return MaintenanceService(reconciler, retention_manager, geo_resolver, durable_store)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)
