from dataclasses import dataclass


@dataclass
class CacheMetrics:
    """Track cache activity for one cached entity service."""

    cache_hits: int = 0
    cache_misses: int = 0
    inserts: int = 0
    refreshes: int = 0
    removals: int = 0

    @property
    def total_lookups(self) -> int:
        """Number of cache lookups made by get."""
        return self.cache_hits + self.cache_misses

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_lookups == 0:
            return 0.0
        return self.cache_hits / self.total_lookups

    def record_hit(self) -> None:
        """Record a cache hit."""
        self.cache_hits += 1

    def record_miss(self) -> None:
        """Record a cache miss."""
        self.cache_misses += 1

    def record_insert(self, count: int = 1) -> None:
        """Record entities stored in the cache."""
        self.inserts += count

    def record_refresh(self) -> None:
        """Record a cached entity refreshed in place."""
        self.refreshes += 1

    def record_removal(self) -> None:
        """Record an entity removed after a delete."""
        self.removals += 1

    def reset(self) -> None:
        """Reset all counters."""
        self.cache_hits = 0
        self.cache_misses = 0
        self.inserts = 0
        self.refreshes = 0
        self.removals = 0

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "hit_rate": self.hit_rate,
            "inserts": self.inserts,
            "refreshes": self.refreshes,
            "removals": self.removals,
        }
