# ==============================================================================
# BigQuery Event Warehouse
# ==============================================================================
"""
BigQuery implementation of the EventWarehouse interface, reading the
day-partitioned raw-event export tables (``events_YYYYMMDD``).
"""

import logging

from google.api_core.exceptions import NotFound
from google.cloud import bigquery
from google.oauth2 import service_account

from eventsync.base.repositories import EventWarehouse
from eventsync.utils.config import WarehouseSettings, get_settings
from eventsync.utils.retry import WAREHOUSE_RETRY_EXCEPTIONS, retry_light

logger = logging.getLogger(__name__)


def build_client(settings: WarehouseSettings) -> bigquery.Client:
    """Create a BigQuery client, using a service-account key file when configured."""
    if settings.credentials_file:
        credentials = service_account.Credentials.from_service_account_file(
            str(settings.credentials_file)
        )
        return bigquery.Client(
            project=settings.project_id, credentials=credentials, location=settings.location
        )
    return bigquery.Client(project=settings.project_id, location=settings.location)


class BigQueryWarehouse(EventWarehouse):
    """
    Event warehouse backed by a BigQuery export dataset.

    Args:
        settings: Warehouse settings. If None, uses get_settings().warehouse.
        client: Pre-built client (tests inject a mock)
    """

    def __init__(self, settings: WarehouseSettings | None = None, client: bigquery.Client | None = None):
        self._settings = settings or get_settings().warehouse
        if not self._settings.is_configured:
            raise ValueError("Warehouse is not configured (set WAREHOUSE_PROJECT_ID and WAREHOUSE_DATASET)")
        self._client = client or build_client(self._settings)

    def _table_id(self, table_name: str) -> str:
        return f"{self._settings.project_id}.{self._settings.dataset}.{table_name}"

    def table_ref(self, table_name: str) -> str:
        return f"`{self._table_id(table_name)}`"

    @retry_light(WAREHOUSE_RETRY_EXCEPTIONS, logger)
    def table_exists(self, table_name: str) -> bool:
        try:
            self._client.get_table(self._table_id(table_name))
            return True
        except NotFound:
            return False

    @retry_light(WAREHOUSE_RETRY_EXCEPTIONS, logger)
    def query(self, sql: str) -> list[dict]:
        job = self._client.query(sql, location=self._settings.location)
        rows = [dict(row.items()) for row in job.result()]
        logger.debug("Warehouse query returned %d rows", len(rows))
        return rows
