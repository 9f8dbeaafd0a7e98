"""
Community rating lookup by identifier: rating cache first, then the rating store.
"""

from shelfscan.internal.cache import TieredCache
from shelfscan.internal.models import ProviderRecord, RatingResult, SourceEnum
from shelfscan.internal.rating_store import RatingStore
from shelfscan.internal.sources.isbn_utils import isbn_variants, normalize_isbn
from shelfscan.util.log import logger


def _to_record(rating: RatingResult) -> ProviderRecord:
    return ProviderRecord(
        source=SourceEnum.ratings,
        rating=rating.rating,
        ratings_count=rating.ratings_count,
    )


async def fetch_rating(
    cache: TieredCache,
    store: RatingStore | None,
    isbn: str | None,
) -> ProviderRecord | None:
    """
    Never falls back to a free-text search: without an identifier there is
    no reliable way to join against the rating dataset.
    """
    if not isbn:
        return None
    isbn = normalize_isbn(isbn).upper()

    cached = await cache.get_rating(isbn)
    if cached is not None:
        logger.debug("Rating cache hit", isbn=isbn)
        return _to_record(cached)

    if store is None:
        return None

    try:
        rating = await store.lookup(isbn_variants(isbn))
    except Exception as e:
        logger.error("Unexpected rating store failure", isbn=isbn, error=str(e))
        return None
    if rating is None:
        return None

    await cache.set_rating(isbn, rating)
    logger.debug("Cached rating from store", isbn=isbn, rating=rating.rating)
    return _to_record(rating)
