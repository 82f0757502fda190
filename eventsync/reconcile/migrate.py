# ==============================================================================
# One-Shot Session Migration
# ==============================================================================
"""
Bulk copy of every local session into the durable store.

Used once when a durable store is first brought online. Each batch is a
single upsert that leaves existing rows untouched; a failing batch counts
all of its records as errors and the migration moves on.
"""

import logging

from pydantic import BaseModel, ValidationError

from eventsync.base.repositories import VIEW_SESSIONS, DurableStore, LocalEventStore
from eventsync.core.models import SessionRecord

logger = logging.getLogger(__name__)


class MigrationResult(BaseModel):
    migrated: int = 0
    errors: int = 0
    skipped: int = 0
    total: int = 0


def migrate_sessions(
    local_store: LocalEventStore, durable_store: DurableStore, batch_size: int = 100
) -> MigrationResult:
    """
    Copy local sessions to the durable store in batches.

    Args:
        local_store: Source sessions
        durable_store: Destination store
        batch_size: Sessions per upsert request

    Returns:
        Counts of migrated, failed and skipped (no session_id) records
    """
    sessions = local_store.list_sessions()
    result = MigrationResult(total=len(sessions))
    logger.info("Found %d sessions in local store", len(sessions))

    valid = [s for s in sessions if isinstance(s, dict) and s.get("session_id")]
    result.skipped = len(sessions) - len(valid)
    logger.info("%d valid sessions (%d skipped, missing session_id)", len(valid), result.skipped)

    batch_count = (len(valid) + batch_size - 1) // batch_size
    for index, start in enumerate(range(0, len(valid), batch_size), start=1):
        batch = valid[start : start + batch_size]
        rows = []
        for raw in batch:
            try:
                rows.append(SessionRecord.model_validate(raw).to_db_record())
            except ValidationError as e:
                logger.error("Invalid session %s: %s", raw.get("session_id"), e.errors()[0].get("msg"))
                result.errors += 1

        if not rows:
            continue
        try:
            durable_store.upsert_rows(VIEW_SESSIONS, rows, ignore_duplicates=True)
        except Exception as e:
            result.errors += len(rows)
            logger.error("Error migrating batch %d/%d: %s", index, batch_count, e)
        else:
            result.migrated += len(rows)
            logger.info(
                "Migrated batch %d/%d (%d/%d)", index, batch_count, result.migrated, len(valid)
            )

    logger.info(
        "Migration summary: %d migrated, %d errors, %d skipped, %d total",
        result.migrated,
        result.errors,
        result.skipped,
        result.total,
    )
    return result
