# ==============================================================================
# Cache Infrastructure
# ==============================================================================
"""
Cache implementations.

Available implementations:
- ValkeyCache: Valkey/Redis-based cache with JSON serialization
"""

from eventsync.infrastructure.cache.valkey import ValkeyCache

__all__ = [
    "ValkeyCache",
]
