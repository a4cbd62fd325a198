"""
Usage tracker.

Counters live in the Django cache (Redis in production) so the web
workers, Celery workers and the report scheduler all see the same
numbers. Use and session counts rely on the cache's atomic incr/decr.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, Iterable

from django.core.cache import cache as default_cache
from django.utils import timezone

from usage.domain.usage_stats import FeatureUsageStats

logger = logging.getLogger(__name__)

KEY_PREFIX = "usage"


class UsageTracker:
    """Feature usage counters shared through the cache."""

    def __init__(
        self,
        feature_ids: Iterable[str],
        cache=None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self._feature_ids = tuple(sorted(feature_ids))
        self._cache = cache if cache is not None else default_cache
        self._clock = clock

    def _key(self, organization_id: str, feature_id: str, field: str) -> str:
        return f"{KEY_PREFIX}:{organization_id}:{feature_id}:{field}"

    def _check_feature(self, feature_id: str) -> None:
        if feature_id not in self._feature_ids:
            raise ValueError(f"Unknown feature: {feature_id}")

    def _counter(self, key: str, delta: int) -> int:
        self._cache.add(key, 0, timeout=None)
        return self._cache.incr(key, delta)

    def _read(self, organization_id: str, feature_id: str) -> FeatureUsageStats:
        return self.stats(organization_id).get(feature_id) or FeatureUsageStats(
            feature_id=feature_id
        )

    def track(self, organization_id: str, feature_id: str) -> FeatureUsageStats:
        """
        Record the start of a feature use.

        Args:
            organization_id: Organization using the feature
            feature_id: Feature being used

        Returns:
            Updated stats for the feature

        Raises:
            ValueError: If the feature is not in the catalog
        """
        self._check_feature(feature_id)
        now = self._clock()
        self._cache.set(self._key(organization_id, feature_id, "last_used"), now, timeout=None)
        self._counter(self._key(organization_id, feature_id, "sessions"), 1)
        self._counter(self._key(organization_id, feature_id, "count"), 1)
        logger.debug(
            "Tracked feature usage",
            extra={"organization_id": organization_id, "feature_id": feature_id},
        )
        return self._read(organization_id, feature_id)

    def end_usage(self, organization_id: str, feature_id: str) -> FeatureUsageStats:
        """
        Record the end of a feature use.

        Ending a use that was never tracked leaves the session count at zero.

        Returns:
            Updated stats for the feature
        """
        self._check_feature(feature_id)
        key = self._key(organization_id, feature_id, "sessions")
        if self._cache.get(key, 0) > 0 and self._counter(key, -1) < 0:
            # Lost a race with another end_usage
            self._counter(key, 1)
        return self._read(organization_id, feature_id)

    def stats(self, organization_id: str) -> Dict[str, FeatureUsageStats]:
        """
        Return a copy of an organization's usage stats.

        Args:
            organization_id: Organization ID

        Returns:
            Map of feature ID to stats for features used at least once
        """
        keys = [
            self._key(organization_id, feature_id, field)
            for feature_id in self._feature_ids
            for field in ("count", "sessions", "last_used")
        ]
        values = self._cache.get_many(keys)
        result = {}
        for feature_id in self._feature_ids:
            count = values.get(self._key(organization_id, feature_id, "count"))
            if not count:
                continue
            result[feature_id] = FeatureUsageStats(
                feature_id=feature_id,
                usage_count=count,
                active_sessions=max(
                    0, values.get(self._key(organization_id, feature_id, "sessions"), 0)
                ),
                last_used=values.get(self._key(organization_id, feature_id, "last_used")),
            )
        return result

    def reset(self, organization_id: str) -> None:
        self._cache.delete_many(
            [
                self._key(organization_id, feature_id, field)
                for feature_id in self._feature_ids
                for field in ("count", "sessions", "last_used")
            ]
        )
