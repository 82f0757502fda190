# ==============================================================================
# Valkey Cache Implementation
# ==============================================================================
"""
Valkey/Redis implementation of the Cache interface.

Backs the optional shared sync-state store so that several processes (the
ops API and a cron-driven CLI, say) see the same reconciler progress.
Values are stored as JSON strings and deserialized on retrieval.
"""

import json
import logging

import redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.retry import Retry

from eventsync.base import Cache
from eventsync.utils.config import get_settings
from eventsync.utils.retry import VALKEY_RETRIES

logger = logging.getLogger(__name__)


class ValkeyCache(Cache):
    """
    Valkey/Redis cache with retrying connections and JSON values.

    Args:
        url: Connection URL. If None, uses settings.
        socket_timeout: Socket timeout in seconds
        retries: Retries for transient failures (default: VALKEY_RETRIES)
        key_prefix: Namespace prepended to every key
    """

    def __init__(
        self,
        url: str | None = None,
        socket_timeout: int = 10,
        retries: int | None = None,
        key_prefix: str = "eventsync:",
    ):
        if url is None:
            url = get_settings().valkey.url

        retry_count = retries if retries is not None else VALKEY_RETRIES
        retry_strategy = Retry(ExponentialBackoff(cap=32, base=1), retries=retry_count)

        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            retry=retry_strategy,
            retry_on_error=[RedisTimeoutError, RedisConnectionError],
            health_check_interval=30,
        )
        self._key_prefix = key_prefix

    @classmethod
    def from_client(cls, client: redis.Redis, key_prefix: str = "eventsync:") -> "ValkeyCache":
        """Wrap an existing client (used with fakeredis in tests)."""
        cache = cls.__new__(cls)
        cache._client = client
        cache._key_prefix = key_prefix
        return cache

    @property
    def client(self) -> redis.Redis:
        return self._client

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def get(self, key: str) -> dict | None:
        value = self._client.get(self._key(key))
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Failed to decode JSON for key %s", key)
            return None

    def set(self, key: str, value: dict) -> None:
        self._client.set(self._key(key), json.dumps(value, default=str))

    def delete(self, key: str) -> bool:
        return self._client.delete(self._key(key)) > 0

    def ping(self) -> bool:
        """True if the server answers, False on any connection error."""
        try:
            return bool(self._client.ping())
        except RedisError:
            return False

    def close(self) -> None:
        self._client.close()
