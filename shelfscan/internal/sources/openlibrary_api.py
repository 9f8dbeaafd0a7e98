"""
OpenLibrary API integration. Secondary bibliographic provider.
"""

import asyncio
from typing import Any

from aiohttp import ClientSession

from shelfscan.internal.models import BookQuery, ProviderRecord, SourceEnum
from shelfscan.internal.sources.isbn_utils import normalize_isbn
from shelfscan.util.log import logger

OPENLIBRARY_BASE = "https://openlibrary.org"


def _extract_cover_url(cover_id: int | None) -> str | None:
    """Generate cover URL from OpenLibrary cover ID."""
    if not cover_id:
        return None
    return f"https://covers.openlibrary.org/b/id/{cover_id}-M.jpg"


def openlibrary_doc_to_record(
    doc: dict[str, Any],
    query: BookQuery,
    rating: float = 0,
    ratings_count: int = 0,
) -> ProviderRecord:
    authors = doc.get("author_name") or []
    isbns = doc.get("isbn") or []
    first_sentence = doc.get("first_sentence") or []

    return ProviderRecord(
        source=SourceEnum.bib_b,
        title=doc.get("title") or query.title,
        author=authors[0] if authors else query.author,
        rating=rating,
        ratings_count=ratings_count,
        description=first_sentence[0] if first_sentence else None,
        thumbnail=_extract_cover_url(doc.get("cover_i")),
        isbn=normalize_isbn(isbns[0]) if isbns else None,
        publish_year=doc.get("first_publish_year"),
    )


async def _get_work_ratings(
    session: ClientSession,
    work_key: str,
    deadline: float,
) -> tuple[float, int]:
    """
    https://openlibrary.org/dev/docs/api/ratings
    Missing ratings are not an error, the record is still usable without them.
    """
    try:
        async with asyncio.timeout_at(deadline):
            async with session.get(
                f"{OPENLIBRARY_BASE}{work_key}/ratings.json",
            ) as response:
                if not response.ok:
                    return 0, 0
                data = await response.json()
    except Exception as e:
        logger.debug(
            "Could not fetch OpenLibrary ratings", work_key=work_key, error=str(e)
        )
        return 0, 0

    summary = data.get("summary") or {}
    average = summary.get("average")
    if not average:
        return 0, 0
    return float(average), int(summary.get("count") or 0)


async def fetch_openlibrary(
    session: ClientSession,
    query: BookQuery,
    timeout: float = 10.0,
) -> ProviderRecord | None:
    """
    Look up the best OpenLibrary match for a title/author pair.

    The search and the ratings request share one `timeout` budget.
    """
    logger.debug("Searching OpenLibrary", title=query.title, author=query.author)

    params = {
        "q": query.search_text,
        "limit": 1,
    }
    deadline = asyncio.get_running_loop().time() + timeout

    try:
        async with asyncio.timeout_at(deadline):
            async with session.get(
                f"{OPENLIBRARY_BASE}/search.json",
                params=params,
            ) as response:
                if not response.ok:
                    logger.warning(
                        "OpenLibrary API error",
                        title=query.title,
                        status=response.status,
                    )
                    return None

                data = await response.json()
        docs = data.get("docs") or []
        if not docs:
            logger.debug("No OpenLibrary match", title=query.title)
            return None
        doc = docs[0]

        rating, ratings_count = 0.0, 0
        if doc.get("key"):
            rating, ratings_count = await _get_work_ratings(
                session, doc["key"], deadline
            )

        return openlibrary_doc_to_record(doc, query, rating, ratings_count)

    except Exception as e:
        logger.error("Error searching OpenLibrary", title=query.title, error=str(e))
        return None
