"""
Connection-pooled client for the community rating dataset.

The store is only ever queried by identifier. When it cannot be reached the
lookup returns None and resolution carries on with the bibliographic ratings.
"""

import asyncio
import time
from typing import Sequence

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlmodel import SQLModel, col, select

from shelfscan.internal.env_settings import DBSettings
from shelfscan.internal.models import BookRating, RatingResult
from shelfscan.util.log import logger


class RatingStore:
    engine: AsyncEngine
    unavailable_until: float | None
    """Monotonic time before which lookups skip the store"""

    def __init__(
        self,
        engine: AsyncEngine,
        acquire_attempts: int = 3,
        acquire_timeout: float = 5.0,
        retry_delays: Sequence[float] = (1.0, 2.0, 3.0),
        unavailable_cooldown: float = 30.0,
    ):
        self.engine = engine
        self.acquire_attempts = acquire_attempts
        self.acquire_timeout = acquire_timeout
        self.retry_delays = list(retry_delays)
        self.unavailable_cooldown = unavailable_cooldown
        self.unavailable_until = None

    @property
    def available(self) -> bool:
        return self.unavailable_until is None

    @classmethod
    def from_settings(cls, settings: DBSettings) -> "RatingStore | None":
        if not settings.url:
            logger.info("No rating store configured, community ratings disabled")
            return None
        engine_kwargs: dict[str, object] = {"pool_pre_ping": True}
        if not settings.url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.pool_size,
                max_overflow=settings.max_overflow,
                pool_timeout=settings.pool_timeout,
            )
        engine = create_async_engine(settings.url, **engine_kwargs)
        return cls(
            engine,
            acquire_attempts=settings.acquire_attempts,
            acquire_timeout=settings.acquire_timeout,
            retry_delays=settings.retry_delays,
            unavailable_cooldown=settings.unavailable_cooldown,
        )

    def _delay(self, attempt: int) -> float:
        if not self.retry_delays:
            return 0.0
        return self.retry_delays[min(attempt, len(self.retry_delays) - 1)]

    def _mark_unavailable(self):
        self.unavailable_until = time.monotonic() + self.unavailable_cooldown

    async def _acquire(self, attempts: int | None = None) -> AsyncConnection | None:
        if attempts is None:
            attempts = self.acquire_attempts
        for attempt in range(attempts):
            try:
                connection = await asyncio.wait_for(
                    self.engine.connect().start(), timeout=self.acquire_timeout
                )
                if not self.available:
                    logger.info("Rating store reachable again")
                self.unavailable_until = None
                return connection
            except Exception as e:
                logger.warning(
                    "Failed to acquire rating store connection",
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    error=str(e),
                )
                if attempt < attempts - 1:
                    await asyncio.sleep(self._delay(attempt))

        logger.error(
            "Rating store unavailable, continuing without community ratings",
            attempts=attempts,
            retry_in=self.unavailable_cooldown,
        )
        self._mark_unavailable()
        return None

    async def check(self) -> bool:
        """Health check. Marks the store available or unavailable."""
        connection = await self._acquire()
        if connection is None:
            return False
        await connection.close()
        logger.info("Rating store connected")
        return True

    async def lookup(self, variants: Sequence[str]) -> RatingResult | None:
        """
        While the store is marked unavailable lookups return None without
        connecting. Once the cooldown has passed a single acquisition attempt
        decides whether it is reachable again.
        """
        if not variants:
            return None

        attempts = None
        if self.unavailable_until is not None:
            if time.monotonic() < self.unavailable_until:
                logger.debug("Rating store marked unavailable, skipping", isbns=variants)
                return None
            attempts = 1

        connection = await self._acquire(attempts)
        if connection is None:
            return None

        try:
            result = await connection.execute(
                select(BookRating.rating, BookRating.ratings_count)
                .where(col(BookRating.isbn).in_(list(variants)))
                .limit(1)
            )
            row = result.first()
        except Exception as e:
            logger.error("Rating store query failed", isbns=variants, error=str(e))
            return None
        finally:
            await connection.close()

        if row is None:
            logger.debug("No rating in store", isbns=variants)
            return None
        try:
            return RatingResult(rating=row.rating, ratings_count=row.ratings_count or 0)
        except ValidationError as e:
            logger.warning(
                "Ignoring invalid rating store row",
                isbns=variants,
                rating=row.rating,
                ratings_count=row.ratings_count,
                error=str(e),
            )
            return None

    async def create_tables(self):
        async with self.engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    async def dispose(self):
        await self.engine.dispose()
