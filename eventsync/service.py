# ==============================================================================
# Maintenance Service
# ==============================================================================
"""
Wires the pipeline components together and runs them behind per-job guards.

Both the scheduler and operator triggers (HTTP, CLI) go through this class,
so a manual trigger that lands while the scheduled run of the same job is in
progress is rejected with JobAlreadyRunning instead of running twice.
"""

import logging
from datetime import date

from eventsync.base.repositories import DurableStore
from eventsync.core.errors import CapabilityMissing, JobAlreadyRunning
from eventsync.core.models import SyncResult, SyncState, WarehouseSyncResult
from eventsync.enrichment.resolver import GeoResolver
from eventsync.reconcile.migrate import MigrationResult, migrate_sessions
from eventsync.reconcile.reconciler import Reconciler
from eventsync.retention.manager import RetentionManager
from eventsync.utils.config import Settings, get_settings
from eventsync.utils.locking import RunGuard
from eventsync.warehouse.job import WarehouseSyncJob

logger = logging.getLogger(__name__)

JOB_SYNC = "sync"
JOB_RETENTION = "retention"
JOB_WAREHOUSE = "warehouse"


class MaintenanceService:
    """Guarded entry points for every job plus status reads."""

    def __init__(
        self,
        reconciler: Reconciler,
        retention: RetentionManager,
        geo_resolver: GeoResolver,
        durable_store: DurableStore,
        warehouse_job: WarehouseSyncJob | None = None,
    ):
        self.reconciler = reconciler
        self.retention = retention
        self.geo = geo_resolver
        self.durable_store = durable_store
        self.warehouse_job = warehouse_job
        self.guards = {name: RunGuard(name) for name in (JOB_SYNC, JOB_RETENTION, JOB_WAREHOUSE)}

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def run_sync(self) -> SyncResult:
        """Run the reconciler. Raises JobAlreadyRunning if a sync is in progress."""
        with self.guards[JOB_SYNC].hold():
            return self.reconciler.run_sync()

    def run_retention(self) -> dict:
        """Run one retention cycle and return dataset stats."""
        with self.guards[JOB_RETENTION].hold():
            return self.retention.run_cycle()

    def run_warehouse_sync(self, day: str | date | None = None) -> WarehouseSyncResult:
        """
        Sync one warehouse day.

        Raises:
            CapabilityMissing: If no warehouse is configured
            JobAlreadyRunning: If a warehouse sync is in progress
            WarehouseSyncError: If the run fails
        """
        if self.warehouse_job is None:
            raise CapabilityMissing("Warehouse is not configured")
        with self.guards[JOB_WAREHOUSE].hold():
            return self.warehouse_job.sync_day(day)

    def run_daily_maintenance(self) -> dict:
        """
        Retention cycle followed by a reconciler run.

        A step whose job is already running is skipped; the other still runs.
        """
        summary: dict = {"retention": None, "sync": None}
        try:
            summary["retention"] = self.run_retention()
        except JobAlreadyRunning as e:
            logger.warning("Daily maintenance: %s", e)

        try:
            summary["sync"] = self.run_sync().model_dump()
        except JobAlreadyRunning as e:
            logger.warning("Daily maintenance: %s", e)

        logger.info("Daily maintenance finished: sync=%s", summary["sync"])
        return summary

    def migrate_sessions(self, batch_size: int | None = None) -> MigrationResult:
        """One-shot bulk copy of local sessions, guarded like a sync."""
        with self.guards[JOB_SYNC].hold():
            return migrate_sessions(
                self.reconciler.local_store,
                self.durable_store,
                batch_size=batch_size or self.reconciler.batch_size,
            )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def sync_status(self) -> SyncState:
        return self.reconciler.status()

    def retention_stats(self) -> dict:
        return self.retention.get_stats()

    def geo_stats(self) -> dict:
        return self.geo.stats()

    def running_jobs(self) -> dict[str, str | None]:
        """Job name -> ISO start time for every job currently running."""
        return {
            name: guard.started_at.isoformat() if guard.started_at else None
            for name, guard in self.guards.items()
            if guard.is_running
        }

    def health(self) -> dict:
        """Durable store reachability."""
        try:
            self.durable_store.ping()
        except Exception as e:
            return {"status": "unhealthy", "durable_store": False, "error": str(e)}
        return {"status": "healthy", "durable_store": True}

    def status(self) -> dict:
        return {
            "sync": self.sync_status().to_json_dict(),
            "retention": self.retention_stats(),
            "geo": self.geo_stats(),
            "running": self.running_jobs(),
            "warehouse_configured": self.warehouse_job is not None,
        }

    def close(self) -> None:
        self.durable_store.close()


def build_service(settings: Settings | None = None) -> MaintenanceService:
    """
    Build the service with the production adapters.

    Connections are opened lazily, so building never touches the network.
    """
    from eventsync.infrastructure.geo.ipapi import IpApiClient
    from eventsync.infrastructure.local_store import JsonFileEventStore
    from eventsync.infrastructure.repositories.postgresql import PostgreSQLDurableStore
    from eventsync.infrastructure.sync_state import FileSyncStateStore, ValkeySyncStateStore

    settings = settings or get_settings()

    durable_store = PostgreSQLDurableStore(settings)
    local_store = JsonFileEventStore(settings.local.sessions_path)

    if settings.sync.state_backend == "valkey":
        from eventsync.infrastructure.cache.valkey import ValkeyCache

        state_store = ValkeySyncStateStore(ValkeyCache(settings.valkey.url))
    else:
        state_store = FileSyncStateStore(settings.local.sync_state_path)

    geo_resolver = GeoResolver.from_settings(IpApiClient(settings.geo), settings.geo)
    reconciler = Reconciler.from_settings(
        local_store, durable_store, state_store, settings.sync, geo_resolver=geo_resolver
    )
    retention = RetentionManager.from_settings(settings.local.data_dir_path, settings.retention)

    warehouse_job = None
    if settings.warehouse.is_configured:
        from eventsync.infrastructure.warehouse.bigquery import BigQueryWarehouse

        warehouse_job = WarehouseSyncJob.from_settings(
            BigQueryWarehouse(settings.warehouse), durable_store, settings.warehouse
        )

    return MaintenanceService(reconciler, retention, geo_resolver, durable_store, warehouse_job)
