# ==============================================================================
# Maintenance Scheduler
# ==============================================================================
"""
Daily cron triggers for the maintenance jobs, on an APScheduler
BackgroundScheduler.

- ``daily-maintenance``: retention cycle, then reconciler
- ``warehouse-sync``: yesterday's warehouse export (optional)

Cron triggers fire again the next day whether or not a run failed.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from eventsync.core.errors import CapabilityMissing, JobAlreadyRunning
from eventsync.service import MaintenanceService
from eventsync.utils.config import SchedulerSettings

logger = logging.getLogger(__name__)

MAINTENANCE_JOB_ID = "daily-maintenance"
WAREHOUSE_JOB_ID = "warehouse-sync"

MISFIRE_GRACE_SECONDS = 3600


class MaintenanceScheduler:
    """
    Owns a BackgroundScheduler with the daily jobs registered.

    Args:
        service: Service whose guarded jobs are triggered
        settings: Wall-clock schedule
        scheduler: Pre-built scheduler (tests inject one that is never started)
    """

    def __init__(
        self,
        service: MaintenanceService,
        settings: SchedulerSettings,
        scheduler: BackgroundScheduler | None = None,
    ):
        self._service = service
        self._settings = settings
        self._scheduler = scheduler or BackgroundScheduler(
            timezone=settings.timezone,
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": MISFIRE_GRACE_SECONDS,
            },
        )
        self._register_jobs()

    @property
    def scheduler(self) -> BackgroundScheduler:
        return self._scheduler

    def _register_jobs(self) -> None:
        self._scheduler.add_job(
            self._run_maintenance,
            CronTrigger(
                hour=self._settings.maintenance_hour,
                minute=self._settings.maintenance_minute,
                timezone=self._settings.timezone,
            ),
            id=MAINTENANCE_JOB_ID,
            replace_existing=True,
        )

        if self._settings.warehouse_enabled:
            self._scheduler.add_job(
                self._run_warehouse_sync,
                CronTrigger(
                    hour=self._settings.warehouse_hour,
                    minute=self._settings.warehouse_minute,
                    timezone=self._settings.timezone,
                ),
                id=WAREHOUSE_JOB_ID,
                replace_existing=True,
            )

    def _run_maintenance(self) -> None:
        try:
            self._service.run_daily_maintenance()
        except Exception:
            logger.exception("Scheduled daily maintenance failed")

    def _run_warehouse_sync(self) -> None:
        try:
            self._service.run_warehouse_sync()
        except (JobAlreadyRunning, CapabilityMissing) as e:
            logger.warning("Scheduled warehouse sync skipped: %s", e)
        except Exception:
            logger.exception("Scheduled warehouse sync failed")

    def start(self) -> None:
        self._scheduler.start()
        for job_id, next_run in self.next_run_times().items():
            logger.info("Scheduled %s, next run at %s", job_id, next_run)

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    def job_ids(self) -> list[str]:
        return [job.id for job in self._scheduler.get_jobs()]

    def next_run_times(self) -> dict[str, str | None]:
        """Job id -> next fire time (ISO), None when not yet computed."""
        times = {}
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            times[job.id] = next_run.isoformat() if next_run else None
        return times
