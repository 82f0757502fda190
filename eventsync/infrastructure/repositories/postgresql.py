# ==============================================================================
# PostgreSQL Durable Store
# ==============================================================================
"""
PostgreSQL implementation of the DurableStore interface.

Provides:
- Session upserts keyed by session_id (one statement per record)
- Bulk upserts of warehouse-derived views with execute_batch
- The optional mark_returning_users() post-processing function
- Warehouse sync run tracking in analytics_sync_runs

Every write commits on success and rolls back on failure, so one rejected
record leaves the connection usable for the next.
"""

import logging
from datetime import datetime

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.extras import Json, execute_batch

from eventsync.base.repositories import (
    VIEW_CONFLICT_KEYS,
    VIEW_CTA_CLICKS,
    VIEW_PAGEVIEWS,
    VIEW_SESSIONS,
    VIEW_VIDEO_EVENTS,
    DurableStore,
)
from eventsync.core.errors import CapabilityMissing, DurableStoreUnavailable
from eventsync.utils.config import Settings, get_settings
from eventsync.utils.retry import POSTGRES_RETRY_EXCEPTIONS, retry_standard

logger = logging.getLogger(__name__)

# Batch size for execute_batch
PAGE_SIZE = 500

# Connection timeout
CONNECT_TIMEOUT = 10

VIEW_TABLES = {
    VIEW_SESSIONS: "analytics_sessions",
    VIEW_PAGEVIEWS: "analytics_pageviews",
    VIEW_VIDEO_EVENTS: "analytics_video_events",
    VIEW_CTA_CLICKS: "analytics_cta_clicks",
}

SYNC_RUNS_TABLE = "analytics_sync_runs"


def _add_connect_timeout(conn_string: str) -> str:
    """Add connect_timeout to connection string if not present."""
    if "connect_timeout" not in conn_string:
        separator = "&" if "?" in conn_string else "?"
        return f"{conn_string}{separator}connect_timeout={CONNECT_TIMEOUT}"
    return conn_string


def _adapt(value):
    """Wrap dict/list values so psycopg2 sends them as JSONB."""
    if isinstance(value, (dict, list)):
        return Json(value)
    return value


def build_upsert_sql(table: str, columns: list[str], conflict_key: str, ignore_duplicates: bool) -> str:
    """
    Build an INSERT ... ON CONFLICT statement with named placeholders.

    Args:
        table: Schema-qualified table name
        columns: Column names, in insert order
        conflict_key: Column carrying the unique constraint
        ignore_duplicates: DO NOTHING on conflict instead of updating

    Returns:
        SQL text for use with execute/execute_batch and a dict row
    """
    column_list = ", ".join(columns)
    placeholders = ", ".join(f"%({c})s" for c in columns)
    sql = f"INSERT INTO {table} ({column_list}) VALUES ({placeholders}) ON CONFLICT ({conflict_key})"

    updates = [c for c in columns if c != conflict_key]
    if ignore_duplicates or not updates:
        return f"{sql} DO NOTHING"
    assignments = ", ".join(f"{c} = EXCLUDED.{c}" for c in updates)
    return f"{sql} DO UPDATE SET {assignments}"


class PostgreSQLDurableStore(DurableStore):
    """
    PostgreSQL implementation of DurableStore.

    The connection is opened lazily on first use, with standard retry on
    transient connection errors.
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the durable store.

        Args:
            settings: Application settings. If None, uses get_settings().
        """
        self._settings = settings or get_settings()
        self._conn: psycopg2.extensions.connection | None = None
        self._schema = self._settings.postgres.schema_name

    @property
    def schema(self) -> str:
        """Get the database schema name."""
        return self._schema

    def _table(self, name: str) -> str:
        return f"{self._schema}.{name}"

    @retry_standard(POSTGRES_RETRY_EXCEPTIONS, logger)
    def connect(self) -> None:
        """Establish connection to PostgreSQL."""
        conn_string = _add_connect_timeout(self._settings.postgres.connection_string)
        self._conn = psycopg2.connect(conn_string)
        logger.info("PostgreSQLDurableStore connected (schema=%s)", self._schema)

    def _connection(self) -> psycopg2.extensions.connection:
        if self._conn is None or self._conn.closed:
            self.connect()
        return self._conn

    def _execute(self, sql: str, params=None, fetch: bool = False):
        conn = self._connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall() if fetch else None
            conn.commit()
            return rows
        except psycopg2.Error:
            conn.rollback()
            raise

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def ping(self) -> None:
        try:
            self._execute(f"SELECT session_id FROM {self._table(VIEW_TABLES[VIEW_SESSIONS])} LIMIT 1", fetch=True)
        except psycopg2.Error as e:
            raise DurableStoreUnavailable(str(e).strip()) from e

    def list_session_ids(self) -> set[str]:
        rows = self._execute(f"SELECT session_id FROM {self._table(VIEW_TABLES[VIEW_SESSIONS])}", fetch=True)
        return {row[0] for row in rows}

    def upsert_session(self, row: dict, ignore_duplicates: bool = True) -> None:
        sql = build_upsert_sql(
            self._table(VIEW_TABLES[VIEW_SESSIONS]),
            list(row.keys()),
            VIEW_CONFLICT_KEYS[VIEW_SESSIONS],
            ignore_duplicates,
        )
        self._execute(sql, {k: _adapt(v) for k, v in row.items()})

    # ------------------------------------------------------------------
    # Warehouse views
    # ------------------------------------------------------------------

    def upsert_rows(self, view: str, rows: list[dict], ignore_duplicates: bool = False) -> int:
        if not rows:
            return 0
        if view not in VIEW_TABLES:
            raise ValueError(f"Unknown view: {view}")

        columns = list(rows[0].keys())
        sql = build_upsert_sql(
            self._table(VIEW_TABLES[view]), columns, VIEW_CONFLICT_KEYS[view], ignore_duplicates
        )
        params = [{c: _adapt(row.get(c)) for c in columns} for row in rows]

        conn = self._connection()
        try:
            with conn.cursor() as cur:
                execute_batch(cur, sql, params, page_size=PAGE_SIZE)
            conn.commit()
        except psycopg2.Error:
            conn.rollback()
            raise
        logger.debug("Upserted %d rows into %s", len(rows), VIEW_TABLES[view])
        return len(rows)

    def mark_returning_users(self, as_of: datetime) -> None:
        try:
            self._execute(f"SELECT {self._schema}.mark_returning_users(%s)", (as_of,))
        except pg_errors.UndefinedFunction as e:
            raise CapabilityMissing("mark_returning_users() is not installed") from e

    # ------------------------------------------------------------------
    # Sync run tracking
    # ------------------------------------------------------------------

    def start_sync_run(self, sync_date: str) -> int | None:
        rows = self._execute(
            f"""
            INSERT INTO {self._table(SYNC_RUNS_TABLE)} (sync_date, start_time, status)
            VALUES (%s, now(), 'running')
            RETURNING id
            """,
            (sync_date,),
            fetch=True,
        )
        return rows[0][0] if rows else None

    def complete_sync_run(
        self,
        run_id: int | None,
        status: str,
        records_processed: dict[str, int],
        error_details: str | None = None,
    ) -> None:
        if run_id is None:
            return
        self._execute(
            f"""
            UPDATE {self._table(SYNC_RUNS_TABLE)}
            SET end_time = now(), status = %s, records_processed = %s, error_details = %s
            WHERE id = %s
            """,
            (status, Json(records_processed), error_details, run_id),
        )

    def close(self) -> None:
        """Close connection and release resources."""
        if self._conn:
            try:
                self._conn.close()
                logger.info("PostgreSQLDurableStore connection closed")
            except psycopg2.Error as e:
                logger.warning("Error closing connection: %s", e)
            finally:
                self._conn = None
