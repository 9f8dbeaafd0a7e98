"""
Cache monitoring and metrics for the merged-book and rating caches.

Tracks cache hits/misses, writes, and backend errors.
"""

from dataclasses import dataclass

from shelfscan.util.log import logger


@dataclass
class CacheMetrics:
    """Metrics for cache performance monitoring."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    backend_errors: int = 0

    @property
    def total_accesses(self) -> int:
        """Total cache accesses (hits + misses)."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate as a percentage."""
        if self.total_accesses == 0:
            return 0.0
        return (self.hits / self.total_accesses) * 100

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    def record_write(self) -> None:
        self.writes += 1

    def record_backend_error(self) -> None:
        """Record a failed call to the cache backend (treated as a miss)."""
        self.backend_errors += 1

    def log_summary(self) -> None:
        """Log current metrics summary."""
        logger.info(
            "Cache metrics summary",
            total_accesses=self.total_accesses,
            hits=self.hits,
            misses=self.misses,
            hit_rate=f"{self.hit_rate:.1f}%",
            writes=self.writes,
            backend_errors=self.backend_errors,
        )
