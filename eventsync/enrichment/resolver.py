# ==============================================================================
# Geolocation Resolver
# ==============================================================================
"""
Resolve client IPs to country/region/city with an in-memory TTL cache and a
window rate limiter over outbound lookups.

Resolution tries an ordered list of strategies and returns the first hit:

    1. fresh-cache   cached entry younger than the TTL
    2. lookup        live lookup, only if the rate limiter grants a permit
    3. stale-cache   any cached entry for the IP, however old
    4. (none)        None

A call never raises and never waits on the limiter. Invalid IPs return None
before any strategy runs, so they never use up rate-limit permits.

The cache and limiter are process-local and not persisted: a restart starts
with an empty cache and a fresh window.
"""

import logging
import random
import time
from collections.abc import Callable

from eventsync.base.geo import GeoLookupClient
from eventsync.core.errors import GeoLookupError
from eventsync.core.models import GeoData
from eventsync.enrichment.ip import is_valid_ipv4
from eventsync.utils.config import GeoSettings
from eventsync.utils.rate_limiter import WindowRateLimiter

logger = logging.getLogger(__name__)

SOURCE_IPAPI = "ipapi"


class GeoResolver:
    """
    Cached, rate-limited IP geolocation.

    Args:
        client: Network lookup client
        rate_limiter: Limiter for live lookups (default: 5 per 60s on ``clock``)
        cache_ttl_seconds: Freshness window for cached entries
        sweep_probability: Chance per call of evicting expired entries
        clock: Callable returning epoch seconds
        rng: Callable returning a float in [0, 1)
    """

    def __init__(
        self,
        client: GeoLookupClient,
        rate_limiter: WindowRateLimiter | None = None,
        cache_ttl_seconds: float = 24 * 3600,
        sweep_probability: float = 0.1,
        clock: Callable[[], float] = time.time,
        rng: Callable[[], float] = random.random,
    ):
        self._client = client
        self._clock = clock
        self._rng = rng
        self._limiter = rate_limiter or WindowRateLimiter(limit=5, window_seconds=60, clock=clock)
        self.cache_ttl_seconds = cache_ttl_seconds
        self.sweep_probability = sweep_probability
        self._cache: dict[str, GeoData] = {}

        self._strategies: list[tuple[str, Callable[[str], GeoData | None]]] = [
            ("fresh-cache", self._from_fresh_cache),
            ("lookup", self._from_lookup),
            ("stale-cache", self._from_stale_cache),
        ]

    @classmethod
    def from_settings(
        cls, client: GeoLookupClient, settings: GeoSettings, clock: Callable[[], float] = time.time
    ) -> "GeoResolver":
        limiter = WindowRateLimiter(
            limit=settings.rate_limit,
            window_seconds=settings.rate_window_seconds,
            clock=clock,
        )
        return cls(
            client,
            rate_limiter=limiter,
            cache_ttl_seconds=settings.cache_ttl_hours * 3600,
            sweep_probability=settings.sweep_probability,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def strategy_names(self) -> list[str]:
        """Fallback order, first to last."""
        return [name for name, _ in self._strategies]

    def resolve(self, ip: str | None) -> GeoData | None:
        """
        Resolve an IP address to a location.

        Args:
            ip: Candidate IPv4 address

        Returns:
            GeoData from the first strategy that produced one, or None
        """
        if not ip or not is_valid_ipv4(ip):
            return None

        if self._rng() < self.sweep_probability:
            self.sweep()

        for name, strategy in self._strategies:
            result = strategy(ip)
            if result is not None:
                logger.debug("Geo %s resolved via %s", ip, name)
                return result
        return None

    def sweep(self) -> int:
        """
        Evict entries older than the TTL.

        Returns:
            Count of entries removed
        """
        expired = [ip for ip, entry in self._cache.items() if not self._is_fresh(entry)]
        for ip in expired:
            del self._cache[ip]
        if expired:
            logger.debug("Swept %d expired geo cache entries", len(expired))
        return len(expired)

    def stats(self) -> dict:
        """Cache size and rate limiter headroom."""
        return {
            "cache_size": len(self._cache),
            "rate_limit_remaining": self._limiter.remaining,
            "window_time_left": round(self._limiter.window_time_left, 3),
        }

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _from_fresh_cache(self, ip: str) -> GeoData | None:
        entry = self._cache.get(ip)
        if entry is not None and self._is_fresh(entry):
            return entry
        return None

    def _from_lookup(self, ip: str) -> GeoData | None:
        if not self._limiter.try_acquire():
            logger.warning("Geo lookup rate limit reached; not looking up %s", ip)
            return None

        try:
            data = self._client.lookup(ip)
            entry = GeoData(
                country=data.get("country"),
                country_code=data.get("country_code"),
                city=data.get("city"),
                region=data.get("region"),
                region_code=data.get("region_code"),
                ts=self._clock(),
                source=SOURCE_IPAPI,
            )
        except GeoLookupError as e:
            logger.warning("Geo lookup failed for %s: %s", ip, e)
            return None
        except Exception:
            logger.exception("Unexpected error during geo lookup for %s", ip)
            return None

        self._cache[ip] = entry
        logger.info("Geo %s -> %s, %s", ip, entry.city, entry.country)
        return entry

    def _from_stale_cache(self, ip: str) -> GeoData | None:
        return self._cache.get(ip)

    def _is_fresh(self, entry: GeoData) -> bool:
        return self._clock() - entry.ts < self.cache_ttl_seconds
