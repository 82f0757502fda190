# ==============================================================================
# Sync State Store Abstract Base Class
# ==============================================================================
"""
Abstract interface for persisting reconciler progress.

One SyncState per reconciliation pipeline, mutated only by the Reconciler
after each run and read by status surfaces.
"""

from abc import ABC, abstractmethod

from eventsync.core.models import SyncState


class SyncStateStore(ABC):
    """Store for reconciler progress that survives process restarts."""

    @abstractmethod
    def load(self) -> SyncState:
        """
        Load the persisted state.

        Returns:
            The stored SyncState, or a fresh one if nothing is stored
            or the stored value is unreadable.
        """
        ...

    @abstractmethod
    def save(self, state: SyncState) -> None:
        """
        Persist the state, replacing the previous value.

        Args:
            state: State to store
        """
        ...
