"""
Reconciles the provider records for one query into a single MergedBook.

Rating priority: rating store > Google Books > OpenLibrary.
Other fields prefer Google Books, except the description where the longer text wins.
"""

from urllib.parse import quote_plus, urlencode

from shelfscan.internal.models import (
    SOURCE_LABELS,
    BookQuery,
    MergedBook,
    ProviderRecord,
)
from shelfscan.internal.sources.isbn_utils import to_isbn10

NO_RATING = "No ratings available"
NO_DESCRIPTION = "No description available"
DEFAULT_AFFILIATE_TAG = "shelfscan-20"


def rating_source_label(record: ProviderRecord) -> str:
    return f"{record.label} ({record.ratings_count:,} reviews)"


def pick_rating(
    rating: ProviderRecord | None,
    google: ProviderRecord | None,
    openlibrary: ProviderRecord | None,
) -> tuple[float, int, str]:
    for record in (rating, google, openlibrary):
        if record is not None and record.rating > 0:
            return record.rating, record.ratings_count, rating_source_label(record)
    return 0.0, 0, NO_RATING


def pick_description(
    primary: ProviderRecord, secondary: ProviderRecord | None
) -> str:
    primary_text = primary.description or ""
    secondary_text = (secondary.description if secondary else None) or ""
    if len(primary_text) > len(secondary_text):
        return primary_text
    return secondary_text or primary_text or NO_DESCRIPTION


def goodreads_url(query: BookQuery, isbn: str | None) -> str:
    if isbn:
        return f"https://www.goodreads.com/book/isbn/{isbn}"
    return "https://www.goodreads.com/search?" + urlencode(
        {"q": query.search_text}, quote_via=quote_plus
    )


def amazon_url(
    query: BookQuery,
    isbn: str | None,
    affiliate_tag: str = DEFAULT_AFFILIATE_TAG,
) -> str:
    if isbn:
        isbn10 = to_isbn10(isbn)
        if isbn10:
            return f"https://www.amazon.com/dp/{isbn10}?tag={affiliate_tag}"
        keywords = f"{query.search_text} {isbn}"
    else:
        keywords = query.search_text
    return "https://www.amazon.com/s?" + urlencode(
        {"k": keywords, "tag": affiliate_tag}, quote_via=quote_plus
    )


def merge_book_data(
    query: BookQuery,
    google: ProviderRecord | None,
    openlibrary: ProviderRecord | None,
    rating: ProviderRecord | None = None,
    affiliate_tag: str = DEFAULT_AFFILIATE_TAG,
) -> MergedBook | None:
    """
    Returns None if no provider returned anything, a found book without
    any rating is still a valid result.
    """
    if google is None and openlibrary is None and rating is None:
        return None

    book_rating, ratings_count, rating_source = pick_rating(
        rating, google, openlibrary
    )

    primary = google or openlibrary
    secondary = openlibrary if google else None

    sources = [
        SOURCE_LABELS[record.source]
        for record in (google, openlibrary, rating)
        if record is not None
    ]

    if primary is None:
        # only the rating lookup answered
        return MergedBook(
            title=query.title,
            author=query.author,
            rating=book_rating,
            ratings_count=ratings_count,
            rating_source=rating_source,
            goodreads_url=goodreads_url(query, None),
            amazon_url=amazon_url(query, None, affiliate_tag),
            sources=sources,
        )

    def pick(field: str):
        value = getattr(primary, field)
        if value is None and secondary is not None:
            value = getattr(secondary, field)
        return value

    isbn = pick("isbn")

    return MergedBook(
        title=pick("title") or query.title,
        author=pick("author") or query.author,
        rating=book_rating,
        ratings_count=ratings_count,
        rating_source=rating_source,
        description=pick_description(primary, secondary),
        thumbnail=pick("thumbnail"),
        isbn=isbn,
        publish_year=pick("publish_year"),
        info_link=google.info_link if google else None,
        goodreads_url=goodreads_url(query, isbn),
        amazon_url=amazon_url(query, isbn, affiliate_tag),
        sources=sources,
    )

