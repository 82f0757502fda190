# ==============================================================================
# In-Process Run Guard
# ==============================================================================
"""
Mutual exclusion for jobs that can be triggered both by the scheduler and by
an operator.  A second trigger while a run is in progress is rejected rather
than queued.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import UTC, datetime

from eventsync.core.errors import JobAlreadyRunning

logger = logging.getLogger(__name__)


class RunGuard:
    """Named non-blocking lock around one job."""

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self.started_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self):
        """Hold the guard for the duration of a run.

        Raises:
            JobAlreadyRunning: If another run holds the guard.
        """
        if not self._lock.acquire(blocking=False):
            logger.info("Job '%s' already running since %s; skipping", self.name, self.started_at)
            raise JobAlreadyRunning(self.name)

        self.started_at = datetime.now(UTC)
        try:
            yield
        finally:
            self.started_at = None
            self._lock.release()
