"""
Two-namespace cache in front of the book providers and the rating store.

Merged books are cached under `book:<title>:<author>` for 30 days, community
ratings under `rating:<isbn>` for 90 days. The cache fails open: a broken
backend behaves like an empty cache.
"""

import asyncio
import time
from typing import Protocol

from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis

from shelfscan.internal.cache_monitoring import CacheMetrics
from shelfscan.internal.models import BookQuery, MergedBook, RatingResult
from shelfscan.internal.sources.isbn_utils import isbn_variants, normalize_isbn
from shelfscan.util.log import logger

BOOK_TTL = 60 * 60 * 24 * 30  # 30 days
RATING_TTL = 60 * 60 * 24 * 90  # 90 days


def book_cache_key(query: BookQuery) -> str:
    return f"book:{query.title.lower()}:{query.author.lower()}"


def rating_cache_key(isbn: str) -> str:
    return f"rating:{normalize_isbn(isbn).upper()}"


class CacheBackend(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class CacheResult(BaseModel, frozen=True):
    value: str
    expires_at: float


class MemoryCacheBackend:
    """
    In-process backend used when no redis is configured.

    Holds at most `max_entries` keys. When full, expired entries are pruned
    first, then the oldest written entries are evicted.
    """

    def __init__(self, max_entries: int = 10_000):
        self.max_entries = max_entries
        self._entries: dict[str, CacheResult] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= time.time():
            self._entries.pop(key, None)
            return None
        return entry.value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        # re-insert so the key counts as the newest write
        self._entries.pop(key, None)
        if len(self) >= self.max_entries:
            self._evict()
        self._entries[key] = CacheResult(
            value=value,
            expires_at=time.time() + ttl_seconds,
        )

    def _evict(self):
        now = time.time()
        for key in [k for k, e in self._entries.items() if e.expires_at <= now]:
            del self._entries[key]
        while self._entries and len(self) >= self.max_entries:
            del self._entries[next(iter(self._entries))]

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheBackend:
    def __init__(self, redis: Redis):
        self.redis = redis

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheBackend":
        return cls(Redis.from_url(url, decode_responses=True, encoding="utf-8"))

    async def get(self, key: str) -> str | None:
        return await self.redis.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self.redis.setex(key, ttl_seconds, value)

    async def ping(self) -> bool:
        return bool(await self.redis.ping())

    async def close(self) -> None:
        await self.redis.aclose()


class TieredCache:
    def __init__(
        self,
        backend: CacheBackend,
        operation_timeout: float = 2.0,
        book_ttl: int = BOOK_TTL,
        rating_ttl: int = RATING_TTL,
        metrics: CacheMetrics | None = None,
    ):
        self.backend = backend
        self.operation_timeout = operation_timeout
        self.book_ttl = book_ttl
        self.rating_ttl = rating_ttl
        self.metrics = metrics or CacheMetrics()

    async def get(self, key: str) -> str | None:
        try:
            value = await asyncio.wait_for(
                self.backend.get(key), timeout=self.operation_timeout
            )
        except Exception as e:
            self.metrics.record_backend_error()
            logger.warning("Cache GET failed, treating as miss", key=key, error=str(e))
            return None
        if value is None:
            self.metrics.record_miss()
        else:
            self.metrics.record_hit()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await asyncio.wait_for(
                self.backend.set(key, value, ttl_seconds),
                timeout=self.operation_timeout,
            )
            self.metrics.record_write()
        except Exception as e:
            self.metrics.record_backend_error()
            logger.warning("Cache SET failed, skipping", key=key, error=str(e))

    async def get_book(self, query: BookQuery) -> MergedBook | None:
        key = book_cache_key(query)
        data = await self.get(key)
        if data is None:
            return None
        try:
            return MergedBook.model_validate_json(data)
        except ValidationError:
            logger.warning("Discarding unreadable cached book", key=key)
            return None

    async def set_book(self, query: BookQuery, book: MergedBook) -> None:
        await self.set(
            book_cache_key(query),
            book.model_dump_json(by_alias=True),
            self.book_ttl,
        )

    async def get_rating(self, isbn: str) -> RatingResult | None:
        """Try every ISBN form of the identifier before giving up."""
        for variant in isbn_variants(isbn):
            key = rating_cache_key(variant)
            data = await self.get(key)
            if data is None:
                continue
            try:
                return RatingResult.model_validate_json(data)
            except ValidationError:
                logger.warning("Discarding unreadable cached rating", key=key)
        return None

    async def set_rating(self, isbn: str, rating: RatingResult) -> None:
        await self.set(rating_cache_key(isbn), rating.model_dump_json(), self.rating_ttl)

    async def ping(self) -> bool:
        try:
            return await asyncio.wait_for(
                self.backend.ping(), timeout=self.operation_timeout
            )
        except Exception as e:
            logger.warning("Cache backend unreachable", error=str(e))
            return False

    async def close(self) -> None:
        try:
            await self.backend.close()
        except Exception as e:
            logger.warning("Error while closing cache backend", error=str(e))
