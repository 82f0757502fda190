# ==============================================================================
# Tests for the Maintenance Scheduler
# ==============================================================================
"""
Unit tests for MaintenanceScheduler. The scheduler is never started; jobs are
inspected and their functions called directly.
"""

from unittest.mock import MagicMock

from eventsync.core.errors import JobAlreadyRunning
from eventsync.scheduler import MAINTENANCE_JOB_ID, WAREHOUSE_JOB_ID, MaintenanceScheduler
from eventsync.utils.config import SchedulerSettings


def cron_fields(job) -> dict[str, str]:
    return {field.name: str(field) for field in job.trigger.fields}


class TestRegistration:
    def test_daily_maintenance_only_by_default(self):
        scheduler = MaintenanceScheduler(MagicMock(), SchedulerSettings(warehouse_enabled=False))
        assert scheduler.job_ids() == [MAINTENANCE_JOB_ID]

    def test_maintenance_fires_at_configured_time(self):
        settings = SchedulerSettings(maintenance_hour=3, maintenance_minute=30, timezone="UTC")
        scheduler = MaintenanceScheduler(MagicMock(), settings)
        fields = cron_fields(scheduler.scheduler.get_job(MAINTENANCE_JOB_ID))
        assert fields["hour"] == "3"
        assert fields["minute"] == "30"

    def test_warehouse_job_when_enabled(self):
        settings = SchedulerSettings(warehouse_enabled=True, warehouse_hour=0, warehouse_minute=15)
        scheduler = MaintenanceScheduler(MagicMock(), settings)
        assert set(scheduler.job_ids()) == {MAINTENANCE_JOB_ID, WAREHOUSE_JOB_ID}
        assert cron_fields(scheduler.scheduler.get_job(WAREHOUSE_JOB_ID))["minute"] == "15"

    def test_not_started(self):
        scheduler = MaintenanceScheduler(MagicMock(), SchedulerSettings())
        assert not scheduler.scheduler.running
        scheduler.shutdown()


class TestJobFunctions:
    def test_maintenance_failure_is_contained(self):
        service = MagicMock()
        service.run_daily_maintenance.side_effect = RuntimeError("boom")
        scheduler = MaintenanceScheduler(service, SchedulerSettings())

        scheduler.scheduler.get_job(MAINTENANCE_JOB_ID).func()
        service.run_daily_maintenance.assert_called_once()

    def test_warehouse_busy_is_skipped(self):
        service = MagicMock()
        service.run_warehouse_sync.side_effect = JobAlreadyRunning("warehouse")
        scheduler = MaintenanceScheduler(service, SchedulerSettings(warehouse_enabled=True))

        scheduler.scheduler.get_job(WAREHOUSE_JOB_ID).func()
        service.run_warehouse_sync.assert_called_once_with()
