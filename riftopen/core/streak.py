"""Per-bucket streak counters that gate lazy pruning."""

from typing import List


DEFAULT_BUCKETS = 256
DEFAULT_STREAK_THRESHOLD = 1


class StreakCounter:
    """
    Consecutive qualifying-measurement counts, bucketed by ``key mod buckets``.

    A measurement qualifies when it is low-confidence or negative. A
    confident positive measurement resets its bucket. Keys that share a
    bucket share a streak.
    """

    def __init__(self, buckets: int = DEFAULT_BUCKETS,
                 threshold: int = DEFAULT_STREAK_THRESHOLD) -> None:
        if buckets <= 0:
            raise ValueError("buckets must be > 0")
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self.buckets = buckets
        self.threshold = threshold
        self._counts: List[int] = [0] * buckets

    def bucket(self, key: int) -> int:
        return key % self.buckets

    def get(self, key: int) -> int:
        """Current streak of the bucket holding ``key``."""
        return self._counts[self.bucket(key)]

    def record_miss(self, key: int) -> int:
        """Count a qualifying measurement and return the new streak."""
        b = self.bucket(key)
        self._counts[b] += 1
        return self._counts[b]

    def triggered(self, key: int) -> bool:
        return self.get(key) >= self.threshold

    def reset(self, key: int) -> None:
        self._counts[self.bucket(key)] = 0

    def active_buckets(self) -> int:
        """Number of buckets with a non-zero streak."""
        return sum(1 for c in self._counts if c)

    def __len__(self) -> int:
        return self.buckets
