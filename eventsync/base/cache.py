# ==============================================================================
# Cache Abstract Base Class
# ==============================================================================
"""
Shared key-value storage for small JSON documents.

The Valkey sync-state backend keeps reconciler progress here so that every
process pointed at the same server reads and writes one document.
"""

from abc import ABC, abstractmethod


class Cache(ABC):
    """Keyed JSON documents; values are dicts, serialized by the implementation."""

    @abstractmethod
    def get(self, key: str) -> dict | None:
        """The stored document, or None if the key is absent or unreadable."""
        ...

    @abstractmethod
    def set(self, key: str, value: dict) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """True if a document was removed."""
        ...
