# ==============================================================================
# Local -> Durable Reconciler
# ==============================================================================
"""
Copies sessions that exist only in the local dataset into the durable store.

One run:

1. Health check against the durable store. If it fails, record the error in
   the sync state and return ``success=False`` without writing anything.
2. Compute local session ids minus durable session ids (one bulk read).
3. Upsert the difference in batches of ``batch_size``, one record at a time,
   stopping after ``batch_cap`` batches. A failing record is counted and
   logged; its siblings still go through.
4. Persist the updated sync state.

Batches run strictly in sequence with a short pause between them. The
backlog left over by the batch cap is picked up by the next run.
"""

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from pydantic import ValidationError

from eventsync.base.repositories import DurableStore, LocalEventStore
from eventsync.base.sync_state import SyncStateStore
from eventsync.core.models import SessionRecord, SyncResult, SyncState
from eventsync.enrichment.resolver import GeoResolver
from eventsync.utils.config import ReconcilerSettings

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Local -> durable session reconciliation.

    Args:
        local_store: Source of local session records
        durable_store: Destination store
        state_store: Where SyncState is persisted
        geo_resolver: Optional resolver for sessions recorded without a country
        batch_size: Records per batch
        batch_cap: Maximum batches per run
        batch_delay_seconds: Pause between batches
        clock: Callable returning the current aware datetime
        sleep: Callable used for the pause (tests pass a no-op)
    """

    def __init__(
        self,
        local_store: LocalEventStore,
        durable_store: DurableStore,
        state_store: SyncStateStore,
        geo_resolver: GeoResolver | None = None,
        batch_size: int = 100,
        batch_cap: int = 50,
        batch_delay_seconds: float = 0.05,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
        sleep: Callable[[float], None] = time.sleep,
    ):
        if batch_size <= 0 or batch_cap <= 0:
            raise ValueError("batch_size and batch_cap must be positive")
        self._local = local_store
        self._durable = durable_store
        self._state_store = state_store
        self._geo = geo_resolver
        self.batch_size = batch_size
        self.batch_cap = batch_cap
        self.batch_delay_seconds = batch_delay_seconds
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        local_store: LocalEventStore,
        durable_store: DurableStore,
        state_store: SyncStateStore,
        settings: ReconcilerSettings,
        geo_resolver: GeoResolver | None = None,
    ) -> "Reconciler":
        return cls(
            local_store,
            durable_store,
            state_store,
            geo_resolver=geo_resolver if settings.enrich_missing_geo else None,
            batch_size=settings.batch_size,
            batch_cap=settings.batch_cap,
            batch_delay_seconds=settings.batch_delay_ms / 1000.0,
        )

    @property
    def local_store(self) -> LocalEventStore:
        return self._local

    @property
    def max_records_per_run(self) -> int:
        return self.batch_size * self.batch_cap

    def status(self) -> SyncState:
        """Current persisted sync state."""
        return self._state_store.load()

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def pending_sessions(self) -> list[dict]:
        """
        Local sessions whose id is absent from the durable store.

        Records without a session_id are skipped; repeated ids keep their
        first occurrence.
        """
        local = self._local.list_sessions()
        logger.info("Found %d sessions in local store", len(local))

        durable_ids = self._durable.list_session_ids()
        logger.info("Found %d sessions in durable store", len(durable_ids))

        pending = []
        seen: set[str] = set()
        missing_id = 0
        for record in local:
            session_id = record.get("session_id") if isinstance(record, dict) else None
            if not session_id:
                missing_id += 1
                continue
            if session_id in durable_ids or session_id in seen:
                continue
            seen.add(session_id)
            pending.append(record)

        if missing_id:
            logger.warning("Skipped %d local records without a session_id", missing_id)
        logger.info("%d sessions need syncing", len(pending))
        return pending

    def run_sync(self) -> SyncResult:
        """
        Run one reconciliation.

        Never raises: an unreachable durable store or state store, or any
        unexpected failure, is reported as ``success=False``.

        Returns:
            SyncResult with the count of sessions written and failed
        """
        logger.info("Starting local -> durable sync")
        # Without the stored state the lifetime counter cannot be carried forward
        try:
            state = self._state_store.load()
        except Exception as e:
            logger.error("Cannot load sync state, skipping sync: %s", e)
            return SyncResult(success=False)

        synced = 0
        errors = 0

        try:
            try:
                self._durable.ping()
            except Exception as e:
                logger.warning("Durable store unavailable, skipping sync: %s", e)
                state.last_error = f"Durable store unavailable: {e}"
                self._save_state(state)
                return SyncResult(success=False)

            pending = self.pending_sessions()
            batches = [
                pending[start : start + self.batch_size]
                for start in range(0, len(pending), self.batch_size)
            ][: self.batch_cap]

            for number, batch in enumerate(batches, start=1):
                if number > 1:
                    self._sleep(self.batch_delay_seconds)
                batch_synced, batch_errors, last_id = self._sync_batch(batch)
                synced += batch_synced
                errors += batch_errors
                if last_id is not None:
                    state.last_synced_session_id = last_id
                logger.info(
                    "Batch %d/%d complete: %d synced, %d errors",
                    number,
                    len(batches),
                    batch_synced,
                    batch_errors,
                )

            if len(pending) > self.max_records_per_run:
                logger.info(
                    "Batch cap reached; %d sessions left for the next run",
                    len(pending) - self.max_records_per_run,
                )

            state.last_sync_timestamp = self._clock()
            state.total_synced += synced
            state.last_error = f"{errors} errors in last sync" if errors > 0 else None
            self._state_store.save(state)

            logger.info(
                "Sync complete: %d sessions synced, %d errors (lifetime total %d)",
                synced,
                errors,
                state.total_synced,
            )
            return SyncResult(success=True, synced=synced, errors=errors)

        except Exception as e:
            logger.error("Fatal error during sync: %s", e)
            state.last_error = str(e) or type(e).__name__
            self._save_state(state)
            return SyncResult(success=False, synced=synced, errors=errors + 1)

    def _save_state(self, state: SyncState) -> None:
        try:
            self._state_store.save(state)
        except Exception as e:
            logger.error("Cannot save sync state: %s", e)

    def _sync_batch(self, batch: list[dict]) -> tuple[int, int, str | None]:
        synced = 0
        errors = 0
        last_id = None
        for raw in batch:
            session_id = raw.get("session_id")
            try:
                record = self._enrich(SessionRecord.model_validate(raw))
                self._durable.upsert_session(record.to_db_record(), ignore_duplicates=True)
            except ValidationError as e:
                logger.error("Invalid session %s: %s", session_id, e.errors()[0].get("msg"))
                errors += 1
            except Exception as e:
                logger.error("Error syncing session %s: %s", session_id, e)
                errors += 1
            else:
                synced += 1
                last_id = session_id
        return synced, errors, last_id

    def _enrich(self, record: SessionRecord) -> SessionRecord:
        if self._geo is None or record.has_location or not record.ip_address:
            return record
        geo = self._geo.resolve(record.ip_address)
        if geo is None or not geo.country:
            return record
        return record.model_copy(
            update={
                "country": geo.country,
                "country_iso2": geo.country_code or record.country_iso2,
                "city": geo.city or record.city,
                "region": geo.region or record.region,
            }
        )
