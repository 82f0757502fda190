# ==============================================================================
# Retention Manager
# ==============================================================================
"""
Keeps the local JSON datasets to a rolling window.

For each configured dataset, once the file grows past ``skip_threshold`` of its
size cap, the manager keeps the newest ``max_records`` records and drops
anything older than ``max_age_days``. The pre-cleanup file is copied to a dated
backup (at most one per dataset per calendar day) before the live file is
atomically replaced. Backups older than ``backup_retention_days`` are pruned
on every cycle.

The durable store is the long-term copy, so data dropped here is not lost as
long as the reconciler has already copied it.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

from pydantic import BaseModel

from eventsync.core.errors import LocalStoreError
from eventsync.utils.config import DatasetRetention, RetentionSettings
from eventsync.utils.files import read_json, write_json_atomic

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024

# Fields checked, in order, for a record's timestamp
TIMESTAMP_FIELDS = ("created_at", "timestamp", "created")

BACKUP_MARKER = "-backup-"

_EPOCH = datetime.fromtimestamp(0, tz=UTC)


class CleanupResult(BaseModel):
    """Outcome of enforcing retention on one dataset."""

    dataset: str
    skipped: bool = False
    original_count: int = 0
    final_count: int = 0
    backup_created: bool = False

    @property
    def removed(self) -> int:
        return self.original_count - self.final_count


def record_time(record: dict) -> datetime:
    """
    Best-available timestamp of a record.

    ISO-8601 strings and epoch milliseconds are understood; naive values are
    taken as UTC. Non-object records and records with no readable timestamp
    sort as the epoch.
    """
    if not isinstance(record, dict):
        return _EPOCH

    value = None
    for field in TIMESTAMP_FIELDS:
        if record.get(field):
            value = record[field]
            break

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return _EPOCH
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return _EPOCH
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return _EPOCH


def apply_record_limit(records: list[dict], max_records: int) -> list[dict]:
    """Keep the ``max_records`` newest records, newest first."""
    if len(records) <= max_records:
        return records
    return sorted(records, key=record_time, reverse=True)[:max_records]


def apply_age_limit(records: list[dict], cutoff: datetime) -> list[dict]:
    """Keep records timestamped at or after ``cutoff``."""
    return [r for r in records if record_time(r) >= cutoff]


def backup_name(dataset: str, day: str) -> str:
    """``analytics-views.json`` -> ``analytics-views-backup-2024-05-01.json``"""
    stem = dataset[: -len(".json")] if dataset.endswith(".json") else dataset
    return f"{stem}{BACKUP_MARKER}{day}.json"


class RetentionManager:
    """
    Enforce per-dataset retention on a directory of JSON datasets.

    Args:
        data_dir: Directory holding the datasets and their backups
        datasets: Dataset file name -> caps
        skip_threshold: Share of the size cap under which a dataset is left alone
        backup_retention_days: Age after which backups are deleted
        clock: Callable returning the current aware datetime
    """

    def __init__(
        self,
        data_dir: Path,
        datasets: dict[str, DatasetRetention],
        skip_threshold: float = 0.8,
        backup_retention_days: int = 7,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.data_dir = Path(data_dir)
        self.datasets = datasets
        self.skip_threshold = skip_threshold
        self.backup_retention_days = backup_retention_days
        self._clock = clock

    @classmethod
    def from_settings(cls, data_dir: Path, settings: RetentionSettings) -> "RetentionManager":
        return cls(
            data_dir,
            settings.datasets,
            skip_threshold=settings.skip_threshold,
            backup_retention_days=settings.backup_retention_days,
        )

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def enforce_retention(self, dataset: str) -> CleanupResult:
        """
        Apply the record and age limits to one dataset.

        Raises:
            KeyError: If the dataset is not configured
            LocalStoreError: If the file cannot be read or rewritten
        """
        config = self.datasets[dataset]
        path = self.data_dir / dataset
        result = CleanupResult(dataset=dataset)

        if not path.exists():
            result.skipped = True
            return result

        size_mb = path.stat().st_size / BYTES_PER_MB
        if size_mb < config.max_file_size_mb * self.skip_threshold:
            logger.debug("Skipping %s (%.2fMB under threshold of %sMB)", dataset, size_mb, config.max_file_size_mb)
            result.skipped = True
            return result

        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        try:
            data = read_json(path)
        except (OSError, ValueError) as e:
            raise LocalStoreError(f"Cannot read {path}: {e}") from e

        if not isinstance(data, list) or not data:
            return result

        now = self._clock()
        cutoff = now - timedelta(days=config.max_age_days)

        kept = apply_record_limit(data, config.max_records)
        kept = apply_age_limit(kept, cutoff)

        result.original_count = len(data)
        result.final_count = len(kept)

        if result.removed == 0:
            logger.info("No cleanup needed for %s: all %d records are recent", dataset, len(data))
            return result

        try:
            result.backup_created = self._write_backup(dataset, data, now)
            write_json_atomic(path, kept)
        except OSError as e:
            raise LocalStoreError(f"Cannot rewrite {path}: {e}") from e

        new_size_mb = path.stat().st_size / BYTES_PER_MB
        logger.info(
            "Cleaned %s: records %d -> %d (removed %d), size %.2fMB -> %.2fMB",
            dataset,
            result.original_count,
            result.final_count,
            result.removed,
            size_mb,
            new_size_mb,
        )
        return result

    def cleanup_all(self) -> dict[str, CleanupResult | None]:
        """
        Enforce retention on every configured dataset.

        A failure on one dataset is logged and does not stop the others.

        Returns:
            Dataset name -> result, or None for datasets that failed
        """
        results: dict[str, CleanupResult | None] = {}
        for dataset in self.datasets:
            try:
                results[dataset] = self.enforce_retention(dataset)
            except (LocalStoreError, OSError) as e:
                logger.error("Failed to clean up %s: %s", dataset, e)
                results[dataset] = None
        return results

    def _write_backup(self, dataset: str, original: list[dict], now: datetime) -> bool:
        path = self.data_dir / backup_name(dataset, now.strftime("%Y-%m-%d"))
        if path.exists():
            return False
        write_json_atomic(path, original)
        logger.info("Created backup %s", path.name)
        return True

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def list_backups(self) -> list[Path]:
        if not self.data_dir.exists():
            return []
        return sorted(p for p in self.data_dir.iterdir() if p.is_file() and BACKUP_MARKER in p.name)

    def prune_backups(self) -> int:
        """
        Delete backups whose modification time is older than the retention window.

        Returns:
            Count of backups deleted
        """
        cutoff = (self._clock() - timedelta(days=self.backup_retention_days)).timestamp()
        removed = 0
        for path in self.list_backups():
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
                    logger.info("Removed old backup %s", path.name)
            except OSError as e:
                logger.error("Failed to remove backup %s: %s", path.name, e)
        return removed

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> dict:
        """
        Size, record count and modification time of every existing dataset.

        Returns:
            {"total_files", "total_size_mb", "datasets": {name: {"size_mb",
            "record_count", "last_modified"}}}; record_count is None when the
            file is not a readable JSON array.
        """
        stats = {"total_files": 0, "total_size_mb": 0.0, "datasets": {}}
        total_size = 0.0

        for dataset in self.datasets:
            path = self.data_dir / dataset
            if not path.exists():
                continue
            stat = path.stat()
            size_mb = stat.st_size / BYTES_PER_MB
            try:
                data = read_json(path)
                record_count = len(data) if isinstance(data, list) else None
            except (OSError, ValueError) as e:
                logger.warning("Cannot read %s for stats: %s", dataset, e)
                record_count = None

            stats["total_files"] += 1
            total_size += size_mb
            stats["datasets"][dataset] = {
                "size_mb": round(size_mb, 2),
                "record_count": record_count,
                "last_modified": datetime.fromtimestamp(stat.st_mtime, tz=UTC).isoformat(),
            }

        stats["total_size_mb"] = round(total_size, 2)
        return stats

    def run_cycle(self) -> dict:
        """Clean every dataset, prune old backups, and return fresh stats."""
        logger.info("Maintaining %d-dataset rolling window in %s", len(self.datasets), self.data_dir)
        self.cleanup_all()
        self.prune_backups()
        return self.get_stats()
