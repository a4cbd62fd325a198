"""
Unit tests for UsageTracker.
"""

import threading

import pytest
from django.core.cache import cache

from usage.domain.tracker import UsageTracker


@pytest.fixture
def tracker(catalog, clock):
    cache.clear()
    yield UsageTracker([f.id for f in catalog.features], clock=clock)
    cache.clear()


class TestUsageTracker:
    """Tests for UsageTracker counters."""

    def test_track_counts_uses_and_sessions(self, tracker, clock):
        tracker.track("org1", "advanced_sso")
        clock.advance(minutes=5)
        stats = tracker.track("org1", "advanced_sso")

        assert stats.usage_count == 2
        assert stats.active_sessions == 2
        assert stats.last_used == clock()

    def test_end_usage_floors_at_zero(self, tracker):
        """Test ending more uses than were started never goes negative."""
        tracker.track("org1", "advanced_sso")

        tracker.end_usage("org1", "advanced_sso")
        stats = tracker.end_usage("org1", "advanced_sso")

        assert stats.active_sessions == 0
        assert stats.usage_count == 1

    def test_end_untracked_usage(self, tracker):
        stats = tracker.end_usage("org1", "advanced_sso")

        assert stats.active_sessions == 0
        assert tracker.stats("org1") == {}

    def test_stats_returns_copy(self, tracker):
        tracker.track("org1", "advanced_sso")

        snapshot = tracker.stats("org1")
        snapshot.clear()

        assert "advanced_sso" in tracker.stats("org1")

    def test_organizations_are_separate(self, tracker):
        tracker.track("org1", "advanced_sso")
        tracker.track("org2", "api_access")

        assert set(tracker.stats("org1")) == {"advanced_sso"}
        assert set(tracker.stats("org2")) == {"api_access"}

    def test_reset(self, tracker):
        tracker.track("org1", "advanced_sso")

        tracker.reset("org1")
        tracker.reset("unknown")

        assert tracker.stats("org1") == {}

    def test_concurrent_tracking(self, tracker):
        """Test counts are exact under concurrent tracking."""

        def worker():
            for _ in range(100):
                tracker.track("org1", "advanced_sso")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert tracker.stats("org1")["advanced_sso"].usage_count == 800

    def test_unknown_feature(self, tracker):
        with pytest.raises(ValueError):
            tracker.track("org1", "teleportation")

    def test_trackers_share_the_cache(self, tracker, catalog, clock):
        """Test a tracker in another process sees the same counters."""
        other = UsageTracker([f.id for f in catalog.features], clock=clock)

        tracker.track("org1", "advanced_sso")
        other.track("org1", "advanced_sso")
        other.end_usage("org1", "advanced_sso")

        stats = tracker.stats("org1")["advanced_sso"]
        assert stats.usage_count == 2
        assert stats.active_sessions == 1
