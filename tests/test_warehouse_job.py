# ==============================================================================
# Tests for the Warehouse -> Durable Sync Job
# ==============================================================================
"""
Unit tests for WarehouseSyncJob.

Tests cover:
- Default day (yesterday UTC) and explicit dates
- Idempotent reruns of the same day
- Chunked upserts
- Missing day table
- Missing returning-user capability
- Failure stage reporting and sync run tracking
"""

from datetime import UTC, date, datetime

import pytest

from conftest import FakeDurableStore, FakeWarehouse, sample_warehouse_day
from eventsync.base import VIEW_CTA_CLICKS, VIEW_PAGEVIEWS, VIEW_SESSIONS, VIEW_VIDEO_EVENTS
from eventsync.core.errors import WarehouseSyncError
from eventsync.warehouse import SyncStage, WarehouseSyncJob, parse_sync_date

TODAY = datetime(2024, 5, 11, 0, 15, tzinfo=UTC)


@pytest.fixture()
def warehouse():
    return FakeWarehouse({"events_20240510": sample_warehouse_day()})


@pytest.fixture()
def job(warehouse, durable_store):
    return WarehouseSyncJob(warehouse, durable_store, chunk_size=2, clock=lambda: TODAY)


def row_counts(store: FakeDurableStore) -> dict[str, int]:
    return {view: len(rows) for view, rows in store.tables.items()}


# ==============================================================================
# Dates
# ==============================================================================


class TestParseSyncDate:
    def test_default_is_yesterday(self):
        assert parse_sync_date(None, date(2024, 5, 11)) == date(2024, 5, 10)

    def test_iso_string(self):
        assert parse_sync_date("2024-01-31", date(2024, 5, 11)) == date(2024, 1, 31)

    def test_invalid_string(self):
        with pytest.raises(ValueError):
            parse_sync_date("31/01/2024", date(2024, 5, 11))

    def test_table_name(self, job):
        assert job.table_name(date(2024, 5, 10)) == "events_20240510"


# ==============================================================================
# Sync
# ==============================================================================


class TestSyncDay:
    def test_syncs_yesterday_by_default(self, job, durable_store):
        result = job.sync_day()

        assert result.sync_date == "2024-05-10"
        assert result.table == "events_20240510"
        assert result.records_processed == {
            VIEW_SESSIONS: 2,
            VIEW_PAGEVIEWS: 5,
            VIEW_VIDEO_EVENTS: 2,
            VIEW_CTA_CLICKS: 1,
        }
        assert result.returning_users_marked
        assert job.stage == SyncStage.DONE
        assert durable_store.marked_as_of == [datetime(2024, 5, 10, tzinfo=UTC)]

    def test_rerun_is_idempotent(self, job, durable_store):
        """Syncing the same day twice leaves the same rows."""
        job.sync_day("2024-05-10")
        first = row_counts(durable_store)
        snapshot = {view: dict(rows) for view, rows in durable_store.tables.items()}

        job.sync_day("2024-05-10")

        assert row_counts(durable_store) == first
        assert durable_store.tables == snapshot

    def test_upserts_in_chunks(self, job, durable_store):
        job.sync_day("2024-05-10")
        pageview_chunks = [n for view, n in durable_store.upsert_calls if view == VIEW_PAGEVIEWS]
        assert pageview_chunks == [2, 2, 1]

    def test_reads_every_view_before_writing(self, job, warehouse, durable_store):
        warehouse.fail_on = VIEW_CTA_CLICKS
        with pytest.raises(WarehouseSyncError):
            job.sync_day("2024-05-10")
        assert durable_store.upsert_calls == []

    def test_run_recorded(self, job, durable_store):
        job.sync_day("2024-05-10")
        run = durable_store.sync_runs[0]
        assert run["sync_date"] == "2024-05-10"
        assert run["status"] == "completed"
        assert run["records_processed"][VIEW_PAGEVIEWS] == 5

    def test_missing_returning_capability_is_a_warning(self, job, durable_store):
        durable_store.has_mark_returning = False
        result = job.sync_day("2024-05-10")
        assert not result.returning_users_marked
        assert durable_store.sync_runs[0]["status"] == "completed"


# ==============================================================================
# Failures
# ==============================================================================


class TestFailures:
    def test_missing_table(self, job, durable_store):
        with pytest.raises(WarehouseSyncError, match="events_20240101 not found") as exc_info:
            job.sync_day("2024-01-01")
        assert exc_info.value.sync_date == "2024-01-01"
        assert job.stage == SyncStage.FAILED
        assert durable_store.sync_runs[0]["status"] == "failed"

    def test_read_failure_reports_stage(self, job, warehouse):
        warehouse.fail_on = VIEW_VIDEO_EVENTS
        with pytest.raises(WarehouseSyncError) as exc_info:
            job.sync_day("2024-05-10")
        assert exc_info.value.stage == SyncStage.READING_VIDEO_EVENTS.value

    def test_upsert_failure_reports_stage(self, job, durable_store):
        durable_store.fail_upsert_rows = True
        with pytest.raises(WarehouseSyncError) as exc_info:
            job.sync_day("2024-05-10")
        assert exc_info.value.stage == SyncStage.UPSERTING.value
        assert durable_store.sync_runs[0]["error_details"] == "upsert request failed"

    def test_invalid_date_is_value_error(self, job):
        with pytest.raises(ValueError):
            job.sync_day("yesterday")
