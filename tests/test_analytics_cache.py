"""
Tests for the analytics TTL cache.
"""

from conftest import FakeClock

from app.services.analytics_cache import AnalyticsCache


class TestAnalyticsCache:
    """Test expiry, overwrite and invalidation."""

    def test_returns_value_within_ttl(self):
        """A fresh entry is returned as stored."""
        clock = FakeClock()
        cache = AnalyticsCache(60, clock=clock)
        value = {"snapshot": 1}

        cache.set(("c", "a"), value)
        clock.advance(seconds=59)

        assert cache.get(("c", "a")) is value

    def test_entry_expires_at_ttl(self):
        """An entry is dropped once its TTL has elapsed."""
        clock = FakeClock()
        cache = AnalyticsCache(60, clock=clock)
        cache.set("key", "value")

        clock.advance(seconds=60)

        assert cache.get("key") is None
        assert len(cache) == 0

    def test_last_writer_wins(self):
        """A second write replaces the first and restarts its TTL."""
        clock = FakeClock()
        cache = AnalyticsCache(60, clock=clock)
        cache.set("key", "first")
        clock.advance(seconds=30)
        cache.set("key", "second")
        clock.advance(seconds=45)

        assert cache.get("key") == "second"

    def test_invalidate_by_predicate(self):
        """Only matching keys are dropped."""
        cache = AnalyticsCache(60, clock=FakeClock())
        cache.set(("c1", "a1"), 1)
        cache.set(("c2", "a1"), 2)
        cache.set(("c1", "a2"), 3)

        dropped = cache.invalidate(lambda key: key[1] == "a1")

        assert dropped == 2
        assert cache.get(("c1", "a2")) == 3
        assert cache.get(("c1", "a1")) is None

    def test_clear(self):
        cache = AnalyticsCache(60, clock=FakeClock())
        cache.set("a", 1)
        cache.set("b", 2)

        cache.clear()

        assert len(cache) == 0
