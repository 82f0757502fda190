# ==============================================================================
# Local Dataset Retention
# ==============================================================================
"""
Rolling-window retention for the local JSON datasets.
"""

from eventsync.retention.manager import (
    CleanupResult,
    RetentionManager,
    apply_age_limit,
    apply_record_limit,
    backup_name,
    record_time,
)

__all__ = [
    "CleanupResult",
    "RetentionManager",
    "apply_age_limit",
    "apply_record_limit",
    "backup_name",
    "record_time",
]
