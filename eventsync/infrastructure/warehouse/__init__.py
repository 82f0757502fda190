# ==============================================================================
# Warehouse Adapters
# ==============================================================================
"""
Event warehouse adapters implementing base.repositories.EventWarehouse.
"""

from eventsync.infrastructure.warehouse.bigquery import BigQueryWarehouse, build_client

__all__ = [
    "BigQueryWarehouse",
    "build_client",
]
