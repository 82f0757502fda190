# ==============================================================================
# Tests for the Maintenance Service and Run Guards
# ==============================================================================
"""
Unit tests for MaintenanceService, RunGuard and build_service().
"""

import json

import pytest

from conftest import FakeWarehouse, make_session, sample_warehouse_day
from eventsync.core.errors import CapabilityMissing, JobAlreadyRunning
from eventsync.infrastructure.sync_state import FileSyncStateStore
from eventsync.service import JOB_RETENTION, JOB_SYNC, MaintenanceService, build_service
from eventsync.utils.config import LocalStoreSettings, Settings, WarehouseSettings
from eventsync.utils.locking import RunGuard
from eventsync.warehouse import WarehouseSyncJob


# ==============================================================================
# RunGuard
# ==============================================================================


class TestRunGuard:
    def test_second_hold_rejected(self):
        guard = RunGuard("sync")
        with guard.hold():
            assert guard.is_running
            assert guard.started_at is not None
            with pytest.raises(JobAlreadyRunning, match="'sync' is already running"):
                with guard.hold():
                    pass
        assert not guard.is_running
        assert guard.started_at is None

    def test_released_after_error(self):
        guard = RunGuard("sync")
        with pytest.raises(RuntimeError):
            with guard.hold():
                raise RuntimeError("boom")
        assert not guard.is_running


# ==============================================================================
# Jobs
# ==============================================================================


class TestJobs:
    def test_run_sync(self, service, local_store, durable_store):
        local_store.append_session(make_session("A"))
        result = service.run_sync()
        assert result.synced == 1
        assert "A" in durable_store.sessions

    def test_sync_rejected_while_running(self, service):
        with service.guards[JOB_SYNC].hold():
            with pytest.raises(JobAlreadyRunning):
                service.run_sync()

    def test_migrate_shares_the_sync_guard(self, service):
        with service.guards[JOB_SYNC].hold():
            with pytest.raises(JobAlreadyRunning):
                service.migrate_sessions()

    def test_migrate(self, service, local_store, durable_store):
        local_store.append_session(make_session("A"))
        result = service.migrate_sessions(batch_size=10)
        assert result.migrated == 1

    def test_daily_maintenance_runs_retention_then_sync(self, service, local_store):
        local_store.append_session(make_session("A"))
        summary = service.run_daily_maintenance()
        assert summary["retention"]["total_files"] == 1
        assert summary["sync"]["synced"] == 1

    def test_daily_maintenance_skips_busy_step(self, service, local_store):
        local_store.append_session(make_session("A"))
        with service.guards[JOB_RETENTION].hold():
            summary = service.run_daily_maintenance()
        assert summary["retention"] is None
        assert summary["sync"]["synced"] == 1

    def test_warehouse_requires_configuration(self, service):
        with pytest.raises(CapabilityMissing):
            service.run_warehouse_sync("2024-05-10")

    def test_warehouse_sync(self, reconciler, retention_manager, geo_resolver, durable_store):
        job = WarehouseSyncJob(FakeWarehouse({"events_20240510": sample_warehouse_day()}), durable_store)
        service = MaintenanceService(reconciler, retention_manager, geo_resolver, durable_store, job)
        result = service.run_warehouse_sync("2024-05-10")
        assert result.records_processed["sessions"] == 2


# ==============================================================================
# Status
# ==============================================================================


class TestStatus:
    def test_health(self, service, durable_store):
        assert service.health() == {"status": "healthy", "durable_store": True}
        durable_store.ping_error = ConnectionError("refused")
        assert service.health() == {"status": "unhealthy", "durable_store": False, "error": "refused"}

    def test_status_is_json_serializable(self, service):
        status = service.status()
        json.dumps(status)
        assert status["sync"]["totalSynced"] == 0
        assert status["running"] == {}
        assert status["warehouse_configured"] is False

    def test_running_jobs(self, service):
        with service.guards[JOB_SYNC].hold():
            assert list(service.running_jobs()) == [JOB_SYNC]

    def test_close(self, service, durable_store):
        service.close()
        assert durable_store.closed


# ==============================================================================
# Wiring
# ==============================================================================


class TestBuildService:
    def test_builds_without_network(self, tmp_path):
        settings = Settings(
            local=LocalStoreSettings(data_dir=tmp_path),
            warehouse=WarehouseSettings(project_id=None, dataset=None),
        )
        service = build_service(settings)

        assert service.warehouse_job is None
        assert service.retention.data_dir == tmp_path
        assert isinstance(service.reconciler._state_store, FileSyncStateStore)
        assert service.reconciler.local_store.path == tmp_path / "analytics-sessions.json"
