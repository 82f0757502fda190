# ==============================================================================
# Tests for the Geolocation Resolver
# ==============================================================================
"""
Unit tests for GeoResolver.

Tests cover:
- Cache hits within the TTL, misses after it
- Stale fallback when rate limited or the lookup fails (expected or not)
- Rate limit window behavior across distinct IPs
- Invalid IPs short-circuit before the limiter
- Expired-entry sweeps
"""

from conftest import FakeClock, FakeGeoClient
from eventsync.enrichment import GeoResolver
from eventsync.utils.config import GeoSettings
from eventsync.utils.rate_limiter import WindowRateLimiter

HOUR = 3600


def make_resolver(client, clock, limit=5, sweep_probability=0.0, rng=None):
    limiter = WindowRateLimiter(limit=limit, window_seconds=60, clock=clock)
    kwargs = {"rng": rng} if rng else {}
    return GeoResolver(
        client, rate_limiter=limiter, sweep_probability=sweep_probability, clock=clock, **kwargs
    )


# ==============================================================================
# Cache
# ==============================================================================


class TestCache:
    def test_first_lookup_then_cached(self, geo_resolver, geo_client):
        """8.8.8.8 is looked up once; the second call returns the same object."""
        first = geo_resolver.resolve("8.8.8.8")
        second = geo_resolver.resolve("8.8.8.8")

        assert first.country == "United States"
        assert first.source == "ipapi"
        assert second is first
        assert geo_client.calls == ["8.8.8.8"]

    def test_fresh_just_inside_ttl(self, geo_resolver, geo_client, clock):
        first = geo_resolver.resolve("8.8.8.8")
        clock.advance(23 * HOUR + 59 * 60)
        assert geo_resolver.resolve("8.8.8.8") is first
        assert len(geo_client.calls) == 1

    def test_expired_just_past_ttl(self, geo_resolver, geo_client, clock):
        first = geo_resolver.resolve("8.8.8.8")
        clock.advance(24 * HOUR + 60)
        refreshed = geo_resolver.resolve("8.8.8.8")

        assert len(geo_client.calls) == 2
        assert refreshed is not first
        assert refreshed.ts == clock.now

    def test_stats(self, geo_resolver):
        geo_resolver.resolve("8.8.8.8")
        stats = geo_resolver.stats()
        assert stats["cache_size"] == 1
        assert stats["rate_limit_remaining"] == 4
        assert stats["window_time_left"] == 60


# ==============================================================================
# Fallbacks
# ==============================================================================


class TestFallbacks:
    def test_strategy_order(self, geo_resolver):
        assert geo_resolver.strategy_names == ["fresh-cache", "lookup", "stale-cache"]

    def test_stale_entry_when_rate_limited(self, geo_client, clock):
        resolver = make_resolver(geo_client, clock, limit=1)
        first = resolver.resolve("8.8.8.8")
        clock.advance(25 * HOUR)

        # Use the one permit of the new window on another IP
        resolver.resolve("1.1.1.1")
        assert resolver.resolve("8.8.8.8") is first
        assert geo_client.calls == ["8.8.8.8", "1.1.1.1"]

    def test_stale_entry_when_lookup_fails(self, geo_resolver, geo_client, clock):
        first = geo_resolver.resolve("8.8.8.8")
        clock.advance(25 * HOUR)
        geo_client.fail = True
        assert geo_resolver.resolve("8.8.8.8") is first

    def test_none_when_lookup_fails_and_nothing_cached(self, geo_resolver, geo_client):
        geo_client.fail = True
        assert geo_resolver.resolve("8.8.8.8") is None
        assert geo_resolver.stats()["cache_size"] == 0

    def test_unexpected_client_error_falls_back_to_stale(self, geo_resolver, geo_client, clock):
        first = geo_resolver.resolve("8.8.8.8")
        clock.advance(25 * HOUR)
        geo_client.lookup = lambda ip: None
        assert geo_resolver.resolve("8.8.8.8") is first

    def test_unexpected_client_error_without_cache_is_none(self, geo_resolver, geo_client):
        def explode(ip):
            raise KeyError("country")

        geo_client.lookup = explode
        assert geo_resolver.resolve("8.8.8.8") is None

    def test_none_when_rate_limited_and_nothing_cached(self, geo_client, clock):
        resolver = make_resolver(geo_client, clock, limit=5)
        for i in range(5):
            assert resolver.resolve(f"10.0.0.{i}") is not None
        assert resolver.resolve("10.0.0.99") is None
        assert len(geo_client.calls) == 5

    def test_window_reset_allows_sixth_lookup(self, geo_client, clock):
        resolver = make_resolver(geo_client, clock, limit=5)
        for i in range(5):
            resolver.resolve(f"10.0.0.{i}")
        clock.advance(61)
        assert resolver.resolve("10.0.0.99") is not None
        assert len(geo_client.calls) == 6


# ==============================================================================
# Invalid input
# ==============================================================================


class TestInvalidIp:
    def test_invalid_ip_returns_none_without_lookup(self, geo_resolver, geo_client):
        for ip in ("", None, "999.1.1.1", "::1", "not-an-ip"):
            assert geo_resolver.resolve(ip) is None
        assert geo_client.calls == []

    def test_invalid_ip_does_not_use_permits(self, geo_resolver):
        for _ in range(10):
            geo_resolver.resolve("300.300.300.300")
        assert geo_resolver.stats()["rate_limit_remaining"] == 5


# ==============================================================================
# Sweep
# ==============================================================================


class TestSweep:
    def test_sweep_removes_only_expired(self, geo_resolver, clock):
        geo_resolver.resolve("8.8.8.8")
        clock.advance(25 * HOUR)
        geo_resolver.resolve("1.1.1.1")

        assert geo_resolver.sweep() == 1
        assert geo_resolver.stats()["cache_size"] == 1

    def test_probabilistic_sweep_runs_when_rng_below_threshold(self, clock):
        client = FakeGeoClient()
        resolver = make_resolver(client, clock, sweep_probability=0.1, rng=lambda: 0.05)
        resolver.resolve("8.8.8.8")
        clock.advance(25 * HOUR)
        resolver.resolve("1.1.1.1")
        # 8.8.8.8 was swept before 1.1.1.1 was cached
        assert resolver.stats()["cache_size"] == 1

    def test_no_sweep_when_rng_above_threshold(self, clock):
        client = FakeGeoClient()
        resolver = make_resolver(client, clock, sweep_probability=0.1, rng=lambda: 0.5)
        resolver.resolve("8.8.8.8")
        clock.advance(25 * HOUR)
        resolver.resolve("1.1.1.1")
        assert resolver.stats()["cache_size"] == 2


class TestFromSettings:
    def test_settings_are_applied(self):
        clock = FakeClock()
        settings = GeoSettings(rate_limit=2, rate_window_seconds=30, cache_ttl_hours=1, sweep_probability=0)
        resolver = GeoResolver.from_settings(FakeGeoClient(), settings, clock=clock)

        assert resolver.cache_ttl_seconds == 3600
        assert resolver.stats()["rate_limit_remaining"] == 2
        assert resolver.stats()["window_time_left"] == 30
