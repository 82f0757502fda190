# ==============================================================================
# JSON File Event Store
# ==============================================================================
"""
Local append-only sessions dataset stored as one JSON array file.
"""

import logging
import threading
from pathlib import Path

from eventsync.base.repositories import LocalEventStore
from eventsync.core.errors import LocalStoreError
from eventsync.utils.files import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class JsonFileEventStore(LocalEventStore):
    """
    Sessions held in a JSON array file.

    A missing file reads as an empty dataset. Appends rewrite the file
    atomically under an in-process lock.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def list_sessions(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = read_json(self.path)
        except (OSError, ValueError) as e:
            raise LocalStoreError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, list):
            raise LocalStoreError(f"{self.path} does not hold a JSON array")
        return data

    def append_session(self, record: dict) -> None:
        with self._lock:
            sessions = self.list_sessions()
            sessions.append(record)
            try:
                write_json_atomic(self.path, sessions)
            except OSError as e:
                raise LocalStoreError(f"Cannot write {self.path}: {e}") from e
        logger.debug("Appended session %s to %s", record.get("session_id"), self.path.name)
