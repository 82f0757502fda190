# ==============================================================================
# Repository Abstract Base Classes
# ==============================================================================
"""
Repository ABCs for the three tiers the pipeline moves events between.

These define the "what" (list, upsert, query) not the "how".
Concrete implementations in infrastructure/ handle the specifics.

Includes:
- LocalEventStore: fast local append-only sessions dataset
- DurableStore: durable store of sessions and warehouse-derived views
- EventWarehouse: day-partitioned raw-event export
"""

from abc import ABC, abstractmethod
from datetime import datetime

# Durable-store views fed by the warehouse sync, with their conflict keys
VIEW_SESSIONS = "sessions"
VIEW_PAGEVIEWS = "pageviews"
VIEW_VIDEO_EVENTS = "video_events"
VIEW_CTA_CLICKS = "cta_clicks"

VIEW_CONFLICT_KEYS = {
    VIEW_SESSIONS: "session_id",
    VIEW_PAGEVIEWS: "id",
    VIEW_VIDEO_EVENTS: "id",
    VIEW_CTA_CLICKS: "id",
}


class LocalEventStore(ABC):
    """Local append-only sessions dataset."""

    @abstractmethod
    def list_sessions(self) -> list[dict]:
        """
        Read every session record currently held locally.

        Returns:
            List of raw session dicts (unvalidated)
        """
        ...

    @abstractmethod
    def append_session(self, record: dict) -> None:
        """
        Append one session record.

        Args:
            record: Session dict with at least session_id and created_at
        """
        ...


class DurableStore(ABC):
    """Durable store holding every session ever seen plus warehouse views."""

    @abstractmethod
    def ping(self) -> None:
        """
        Run a trivial read against the sessions table.

        Raises:
            DurableStoreUnavailable: If the store did not answer (adapters may
                raise other errors too; callers treat any error as unreachable)
        """
        ...

    @abstractmethod
    def list_session_ids(self) -> set[str]:
        """Bulk-read every session_id in the durable sessions table."""
        ...

    @abstractmethod
    def upsert_session(self, row: dict, ignore_duplicates: bool = True) -> None:
        """
        Upsert one session row keyed by session_id.

        Args:
            row: Durable session row
            ignore_duplicates: Leave an existing row untouched instead of updating it
        """
        ...

    @abstractmethod
    def upsert_rows(self, view: str, rows: list[dict], ignore_duplicates: bool = False) -> int:
        """
        Upsert rows into one view in a single request, updating on conflict.

        Args:
            view: One of the VIEW_* names
            rows: Rows carrying the view's conflict key, all with the same columns
            ignore_duplicates: Leave existing rows untouched instead of updating them

        Returns:
            Count of rows sent
        """
        ...

    @abstractmethod
    def mark_returning_users(self, as_of: datetime) -> None:
        """
        Flag sessions whose user was first seen before ``as_of``.

        Raises:
            CapabilityMissing: If the store has no such function installed
        """
        ...

    def start_sync_run(self, sync_date: str) -> int | None:
        """Record the start of a warehouse sync run. Returns a run id if tracked."""
        return None

    def complete_sync_run(
        self,
        run_id: int | None,
        status: str,
        records_processed: dict[str, int],
        error_details: str | None = None,
    ) -> None:
        """Record the outcome of a warehouse sync run."""
        return None

    def close(self) -> None:
        """Close connection and release resources."""
        return None


class EventWarehouse(ABC):
    """Day-partitioned, SQL-queryable raw event export."""

    @abstractmethod
    def table_ref(self, table_name: str) -> str:
        """Fully qualified, quoted reference for a table in the export dataset."""
        ...

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        """Check whether a day table exists in the export dataset."""
        ...

    @abstractmethod
    def query(self, sql: str) -> list[dict]:
        """
        Run a query and return its rows as dicts.

        Args:
            sql: Query text

        Returns:
            Rows in result order
        """
        ...
