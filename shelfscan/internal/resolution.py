"""
Resolves book candidates into merged, rated, reading-list annotated books.

Google Books and OpenLibrary are queried in parallel, the identifier they
return is used for the community rating lookup, and the result is cached
for 30 days under the lower-cased title and author.
"""

import asyncio
from dataclasses import dataclass
from typing import Sequence

from aiohttp import ClientSession

from shelfscan.internal.cache import (
    MemoryCacheBackend,
    RedisCacheBackend,
    TieredCache,
)
from shelfscan.internal.env_settings import Settings
from shelfscan.internal.merge import DEFAULT_AFFILIATE_TAG, merge_book_data
from shelfscan.internal.models import BatchResult, BookQuery, MergedBook
from shelfscan.internal.rating_store import RatingStore
from shelfscan.internal.ratings import fetch_rating
from shelfscan.internal.reading_list import annotate_book
from shelfscan.internal.repositories import ReadingListRepository
from shelfscan.internal.sources.google_books_api import fetch_google_books
from shelfscan.internal.sources.isbn_utils import is_isbn
from shelfscan.internal.sources.openlibrary_api import fetch_openlibrary
from shelfscan.util.log import logger


@dataclass
class ResolutionContext:
    """Everything a resolution needs. Built once at startup and passed around explicitly."""

    client_session: ClientSession
    cache: TieredCache
    rating_store: RatingStore | None = None
    reading_list: ReadingListRepository | None = None
    google_books_api_key: str | None = None
    provider_timeout: float = 10.0
    request_timeout: float | None = None
    affiliate_tag: str = DEFAULT_AFFILIATE_TAG

    async def close(self):
        await self.cache.close()
        if self.rating_store is not None:
            await self.rating_store.dispose()
        if not self.client_session.closed:
            await self.client_session.close()


async def build_context(settings: Settings | None = None) -> ResolutionContext:
    if settings is None:
        settings = Settings()

    if settings.cache.redis_url:
        backend = RedisCacheBackend.from_url(settings.cache.redis_url)
    else:
        logger.info("No redis configured, using in-process cache")
        backend = MemoryCacheBackend(max_entries=settings.cache.memory_max_entries)
    cache = TieredCache(
        backend,
        operation_timeout=settings.cache.operation_timeout,
        book_ttl=settings.cache.book_ttl,
        rating_ttl=settings.cache.rating_ttl,
    )
    if await cache.ping():
        logger.info("Cache backend connected")
    else:
        logger.warning("Cache backend not available, caching disabled until it recovers")

    rating_store = RatingStore.from_settings(settings.db)
    reading_list = None
    if rating_store is not None:
        await rating_store.check()
        reading_list = ReadingListRepository(rating_store.engine)

    return ResolutionContext(
        client_session=ClientSession(),
        cache=cache,
        rating_store=rating_store,
        reading_list=reading_list,
        google_books_api_key=settings.providers.google_books_api_key,
        provider_timeout=settings.providers.timeout,
        request_timeout=settings.app.request_timeout,
        affiliate_tag=settings.app.amazon_affiliate_tag,
    )


async def resolve_book(context: ResolutionContext, query: BookQuery) -> MergedBook | None:
    """Returns None if no provider knows the book."""
    cached = await context.cache.get_book(query)
    if cached is not None:
        logger.debug("Book cache hit", title=query.title, author=query.author)
        return cached

    google, openlibrary = await asyncio.gather(
        fetch_google_books(
            context.client_session,
            query,
            api_key=context.google_books_api_key,
            timeout=context.provider_timeout,
        ),
        fetch_openlibrary(
            context.client_session,
            query,
            timeout=context.provider_timeout,
        ),
    )

    # fixed priority, independent of which provider answered first
    isbn = next(
        (
            r.isbn
            for r in (google, openlibrary)
            if r is not None and is_isbn(r.isbn)
        ),
        None,
    )

    rating = None
    if isbn:
        rating = await fetch_rating(context.cache, context.rating_store, isbn)

    book = merge_book_data(
        query,
        google,
        openlibrary,
        rating,
        affiliate_tag=context.affiliate_tag,
    )
    if book is None:
        logger.info("Book not found", title=query.title, author=query.author)
        return None

    await context.cache.set_book(query, book)
    logger.info(
        "Fetched and cached book",
        title=query.title,
        sources=book.sources,
        rating=book.rating,
    )
    return book


def rank_books(books: Sequence[MergedBook]) -> list[MergedBook]:
    """Highest rating first, ties broken by the number of ratings."""
    return sorted(books, key=lambda b: (b.rating, b.ratings_count), reverse=True)


def _task_result(task: "asyncio.Task[MergedBook | None]") -> MergedBook | None:
    if task.cancelled():
        return None
    error = task.exception()
    if error is not None:
        logger.error("Failed to resolve book", error=str(error))
        return None
    return task.result()


async def _resolve_all(
    context: ResolutionContext, queries: Sequence[BookQuery]
) -> list[MergedBook | None]:
    tasks = [asyncio.create_task(resolve_book(context, q)) for q in queries]
    if not tasks:
        return []

    _, pending = await asyncio.wait(tasks, timeout=context.request_timeout)
    if pending:
        logger.warning(
            "Batch resolution timed out",
            unresolved=len(pending),
            timeout=context.request_timeout,
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
    return [_task_result(t) for t in tasks]


async def resolve_batch(
    context: ResolutionContext,
    queries: Sequence[BookQuery],
    user_id: str | None = None,
) -> BatchResult:
    logger.info("Resolving books", count=len(queries), user_id=user_id)

    results = await _resolve_all(context, queries)
    books = [b for b in results if b is not None]

    if user_id is not None and context.reading_list is not None and books:
        try:
            entries = await context.reading_list.get_for_user(user_id)
        except Exception as e:
            logger.error("Failed to load reading list", user_id=user_id, error=str(e))
            entries = []
        books = [annotate_book(b, entries) for b in books]

    ranked = rank_books(books)
    logger.info(
        "Resolved books",
        total_found=len(queries),
        total_processed=len(ranked),
    )
    return BatchResult(
        books=ranked,
        total_found=len(queries),
        total_processed=len(ranked),
    )
