# ==============================================================================
# Warehouse -> Durable Sync Job
# ==============================================================================
"""
Pulls one UTC day of raw events from the warehouse export and upserts the
derived sessions, pageviews, video events and CTA clicks into the durable
store.

Run stages::

    IDLE -> READING_SESSIONS -> READING_PAGEVIEWS -> READING_VIDEO_EVENTS
         -> READING_CTA_CLICKS -> UPSERTING -> MARKING_RETURNING -> DONE
                                                             \\-> FAILED

Any read or upsert error moves the run to FAILED and is raised to the caller
as WarehouseSyncError. There is no partial resume: rows carry idempotent keys,
so the whole day is simply run again.
"""

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, time, timedelta
from enum import Enum

from eventsync.base.repositories import (
    VIEW_CTA_CLICKS,
    VIEW_PAGEVIEWS,
    VIEW_SESSIONS,
    VIEW_VIDEO_EVENTS,
    DurableStore,
    EventWarehouse,
)
from eventsync.core.errors import CapabilityMissing, WarehouseSyncError, WarehouseTableNotFound
from eventsync.core.models import WarehouseSyncResult
from eventsync.utils.config import WarehouseSettings
from eventsync.warehouse.queries import render_query
from eventsync.warehouse.transform import TRANSFORMS

logger = logging.getLogger(__name__)


class SyncStage(str, Enum):
    IDLE = "idle"
    READING_SESSIONS = "reading_sessions"
    READING_PAGEVIEWS = "reading_pageviews"
    READING_VIDEO_EVENTS = "reading_video_events"
    READING_CTA_CLICKS = "reading_cta_clicks"
    UPSERTING = "upserting"
    MARKING_RETURNING = "marking_returning"
    DONE = "done"
    FAILED = "failed"


READ_STAGES = [
    (VIEW_SESSIONS, SyncStage.READING_SESSIONS),
    (VIEW_PAGEVIEWS, SyncStage.READING_PAGEVIEWS),
    (VIEW_VIDEO_EVENTS, SyncStage.READING_VIDEO_EVENTS),
    (VIEW_CTA_CLICKS, SyncStage.READING_CTA_CLICKS),
]

RUN_COMPLETED = "completed"
RUN_FAILED = "failed"


def parse_sync_date(value: str | date | None, today: date) -> date:
    """
    Resolve the day to sync.

    Args:
        value: ``YYYY-MM-DD`` string, a date, or None for yesterday
        today: Current UTC date

    Raises:
        ValueError: If the string is not a valid ISO date
    """
    if value is None:
        return today - timedelta(days=1)
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


class WarehouseSyncJob:
    """
    Sync one day of the warehouse export into the durable store.

    Args:
        warehouse: Warehouse to read from
        durable_store: Store to upsert into
        chunk_size: Rows per upsert request
        table_prefix: Day table prefix (``events_``)
        clock: Callable returning the current aware datetime
    """

    def __init__(
        self,
        warehouse: EventWarehouse,
        durable_store: DurableStore,
        chunk_size: int = 500,
        table_prefix: str = "events_",
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self._warehouse = warehouse
        self._durable = durable_store
        self.chunk_size = chunk_size
        self.table_prefix = table_prefix
        self._clock = clock
        self.stage = SyncStage.IDLE

    @classmethod
    def from_settings(
        cls, warehouse: EventWarehouse, durable_store: DurableStore, settings: WarehouseSettings
    ) -> "WarehouseSyncJob":
        return cls(
            warehouse,
            durable_store,
            chunk_size=settings.chunk_size,
            table_prefix=settings.table_prefix,
        )

    def _set_stage(self, stage: SyncStage) -> None:
        logger.debug("Warehouse sync stage: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def table_name(self, day: date) -> str:
        return f"{self.table_prefix}{day:%Y%m%d}"

    def sync_day(self, day: str | date | None = None) -> WarehouseSyncResult:
        """
        Sync one day, defaulting to yesterday in UTC.

        Returns:
            WarehouseSyncResult with rows upserted per view

        Raises:
            ValueError: If ``day`` is not a valid date
            WarehouseSyncError: If any read or upsert fails
        """
        target = parse_sync_date(day, self._clock().astimezone(UTC).date())
        sync_date = target.isoformat()
        table = self.table_name(target)
        records: dict[str, int] = {}

        self.stage = SyncStage.IDLE
        logger.info("Starting warehouse sync for %s (table: %s)", sync_date, table)
        run_id = None

        try:
            run_id = self._durable.start_sync_run(sync_date)
            if not self._warehouse.table_exists(table):
                raise WarehouseTableNotFound(f"Warehouse table {table} not found")

            table_ref = self._warehouse.table_ref(table)
            derived: dict[str, list[dict]] = {}
            for view, stage in READ_STAGES:
                self._set_stage(stage)
                rows = self._warehouse.query(render_query(view, table_ref))
                derived[view] = [TRANSFORMS[view](row) for row in rows]
                logger.info("Read %d %s rows", len(derived[view]), view)

            self._set_stage(SyncStage.UPSERTING)
            for view, rows in derived.items():
                records[view] = self._upsert_chunks(view, rows)
                logger.info("Synced %d %s", records[view], view)

            self._set_stage(SyncStage.MARKING_RETURNING)
            marked = self._mark_returning(target)

        except Exception as e:
            failed_stage = self.stage
            self._set_stage(SyncStage.FAILED)
            logger.error("Warehouse sync failed for %s at %s: %s", sync_date, failed_stage.value, e)
            self._complete_run(run_id, RUN_FAILED, records, str(e))
            raise WarehouseSyncError(
                f"Warehouse sync for {sync_date} failed at {failed_stage.value}: {e}",
                stage=failed_stage.value,
                sync_date=sync_date,
            ) from e

        self._set_stage(SyncStage.DONE)
        self._complete_run(run_id, RUN_COMPLETED, records)
        logger.info("Warehouse sync completed for %s: %s", sync_date, records)
        return WarehouseSyncResult(
            sync_date=sync_date,
            table=table,
            records_processed=records,
            returning_users_marked=marked,
        )

    def _upsert_chunks(self, view: str, rows: list[dict]) -> int:
        total = 0
        for start in range(0, len(rows), self.chunk_size):
            chunk = rows[start : start + self.chunk_size]
            total += self._durable.upsert_rows(view, chunk)
        return total

    def _mark_returning(self, target: date) -> bool:
        as_of = datetime.combine(target, time.min, tzinfo=UTC)
        try:
            self._durable.mark_returning_users(as_of)
        except CapabilityMissing as e:
            logger.warning("Skipping returning-user marking: %s", e)
            return False
        return True

    def _complete_run(
        self, run_id: int | None, status: str, records: dict[str, int], error: str | None = None
    ) -> None:
        try:
            self._durable.complete_sync_run(run_id, status, records, error)
        except Exception as e:
            logger.warning("Could not record sync run %s as %s: %s", run_id, status, e)
