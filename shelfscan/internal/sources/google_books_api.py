"""
Google Books API integration. Primary bibliographic provider.
"""

from typing import Any

import aiohttp
from aiohttp import ClientSession

from shelfscan.internal.models import BookQuery, ProviderRecord, SourceEnum
from shelfscan.internal.sources.isbn_utils import normalize_isbn
from shelfscan.util.log import logger

GOOGLE_BOOKS_API = "https://www.googleapis.com/books/v1/volumes"


def extract_isbn(volume_info: dict[str, Any]) -> str | None:
    """Pick the ISBN-13 if the volume has one, otherwise the ISBN-10."""
    isbn_10 = None
    isbn_13 = None

    for identifier in volume_info.get("industryIdentifiers", []):
        id_type = identifier.get("type")
        id_value = normalize_isbn(identifier.get("identifier", ""))

        if id_type == "ISBN_10":
            isbn_10 = id_value
        elif id_type == "ISBN_13":
            isbn_13 = id_value

    return isbn_13 or isbn_10 or None


def _parse_year(published_date: str | None) -> int | None:
    if not published_date:
        return None
    try:
        return int(published_date[:4])
    except ValueError:
        return None


def google_books_item_to_record(
    item: dict[str, Any], query: BookQuery
) -> ProviderRecord:
    volume_info = item.get("volumeInfo", {})
    authors = volume_info.get("authors") or []

    return ProviderRecord(
        source=SourceEnum.bib_a,
        title=volume_info.get("title") or query.title,
        author=authors[0] if authors else query.author,
        rating=volume_info.get("averageRating") or 0,
        ratings_count=volume_info.get("ratingsCount") or 0,
        description=volume_info.get("description") or None,
        thumbnail=(volume_info.get("imageLinks") or {}).get("thumbnail"),
        isbn=extract_isbn(volume_info),
        info_link=volume_info.get("infoLink"),
        publish_year=_parse_year(volume_info.get("publishedDate")),
    )


async def fetch_google_books(
    session: ClientSession,
    query: BookQuery,
    api_key: str | None = None,
    timeout: float = 10.0,
) -> ProviderRecord | None:
    """
    Look up the best Google Books match for a title/author pair.
    Returns None on any failure, including timeouts and malformed responses.
    """
    params = {
        "q": query.search_text,
        "maxResults": 1,
        "printType": "books",
    }
    if api_key:
        params["key"] = api_key

    logger.debug("Searching Google Books", title=query.title, author=query.author)

    try:
        async with session.get(
            GOOGLE_BOOKS_API,
            params=params,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as response:
            if not response.ok:
                logger.warning(
                    "Google Books API error",
                    title=query.title,
                    status=response.status,
                )
                return None

            data = await response.json()
            items = data.get("items") or []
            if not items:
                logger.debug("No Google Books match", title=query.title)
                return None

            return google_books_item_to_record(items[0], query)

    except Exception as e:
        logger.error("Error searching Google Books", title=query.title, error=str(e))
        return None
