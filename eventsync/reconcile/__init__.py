# ==============================================================================
# Local -> Durable Reconciliation
# ==============================================================================
"""
Reconciler for the local sessions dataset, plus the one-shot bulk migration.
"""

from eventsync.reconcile.migrate import MigrationResult, migrate_sessions
from eventsync.reconcile.reconciler import Reconciler

__all__ = [
    "MigrationResult",
    "Reconciler",
    "migrate_sessions",
]
