# ==============================================================================
# Sync State Store Implementations
# ==============================================================================
"""
SyncStateStore backends.

- FileSyncStateStore: JSON file next to the local datasets (default)
- ValkeySyncStateStore: one JSON value in Valkey, shared across processes
"""

import logging
import shutil
from pathlib import Path

from pydantic import ValidationError

from eventsync.base.cache import Cache
from eventsync.base.sync_state import SyncStateStore
from eventsync.core.models import SyncState
from eventsync.utils.files import read_json, write_json_atomic

logger = logging.getLogger(__name__)

SYNC_STATE_KEY = "sync-state"


class FileSyncStateStore(SyncStateStore):
    """
    Sync state persisted as a camelCase JSON file.

    An unreadable file is copied aside to ``<name>.unreadable`` before the
    store starts fresh, so the previous counters can be recovered by hand.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def unreadable_path(self) -> Path:
        return self.path.with_name(f"{self.path.name}.unreadable")

    def load(self) -> SyncState:
        if not self.path.exists():
            return SyncState()
        try:
            return SyncState.model_validate(read_json(self.path))
        except (OSError, ValueError, ValidationError) as e:
            logger.error("Unreadable sync state at %s, starting fresh: %s", self.path, e)
            self._keep_unreadable()
            return SyncState()

    def save(self, state: SyncState) -> None:
        write_json_atomic(self.path, state.to_json_dict())

    def _keep_unreadable(self) -> None:
        try:
            shutil.copy2(self.path, self.unreadable_path)
        except OSError as e:
            logger.error("Could not copy %s aside: %s", self.path, e)
            return
        logger.error("Previous sync state kept at %s", self.unreadable_path)


class ValkeySyncStateStore(SyncStateStore):
    """Sync state persisted as one JSON value in a Cache."""

    def __init__(self, cache: Cache, key: str = SYNC_STATE_KEY):
        self._cache = cache
        self._key = key

    @property
    def unreadable_key(self) -> str:
        return f"{self._key}:unreadable"

    def load(self) -> SyncState:
        data = self._cache.get(self._key)
        if data is None:
            return SyncState()
        try:
            return SyncState.model_validate(data)
        except ValidationError as e:
            logger.error("Unreadable sync state in cache, starting fresh (kept under %s): %s", self.unreadable_key, e)
            self._cache.set(self.unreadable_key, data)
            return SyncState()

    def save(self, state: SyncState) -> None:
        self._cache.set(self._key, state.to_json_dict())
