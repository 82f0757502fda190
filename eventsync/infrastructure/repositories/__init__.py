# ==============================================================================
# Database Repository Adapters
# ==============================================================================
"""
Database adapters implementing the repository interfaces from base/repositories.py.

Currently supported:
- PostgreSQL durable store (postgresql.py)
"""

from eventsync.infrastructure.repositories.postgresql import (
    PostgreSQLDurableStore,
    build_upsert_sql,
)

__all__ = [
    "PostgreSQLDurableStore",
    "build_upsert_sql",
]
