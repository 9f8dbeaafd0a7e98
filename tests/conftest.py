"""
Pytest configuration and fixtures for shelfscan tests.
"""

import asyncio
from typing import Any

import pytest
import pytest_asyncio
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import create_async_engine

from shelfscan.internal.cache import MemoryCacheBackend, TieredCache
from shelfscan.internal.rating_store import RatingStore
from shelfscan.internal.resolution import ResolutionContext

GOOGLE_URL = "https://www.googleapis.com/books/v1/volumes"
OPENLIBRARY_SEARCH_URL = "https://openlibrary.org/search.json"


# =============================================================================
# Fake HTTP
# =============================================================================


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, delay: float = 0):
        self.status = status
        self.payload = payload
        self.delay = delay

    @property
    def ok(self) -> bool:
        return self.status < 400

    async def json(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Minimal stand-in for aiohttp.ClientSession.

    Routes map a URL to a FakeResponse, or to an exception raised when the
    request is made. Unknown URLs answer 404.
    """

    def __init__(self, routes: dict[str, FakeResponse | Exception] | None = None):
        self.routes = routes or {}
        self.calls: list[tuple[str, dict | None]] = []
        self.closed = False

    def get(self, url: str, params: dict | None = None, **kwargs):
        self.calls.append((url, params))
        route = self.routes.get(url, FakeResponse(404, {}))
        if isinstance(route, Exception):
            raise route
        return route

    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]

    async def close(self):
        self.closed = True


class FailingCacheBackend:
    """A cache backend whose server is permanently down."""

    async def get(self, key: str) -> str | None:
        raise ConnectionError("cache down")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        raise ConnectionError("cache down")

    async def ping(self) -> bool:
        raise ConnectionError("cache down")

    async def close(self) -> None:
        pass


# =============================================================================
# Provider payloads
# =============================================================================


def google_payload(
    title: str = "The Hobbit",
    author: str = "J.R.R. Tolkien",
    rating: float | None = 4.0,
    ratings_count: int | None = 50,
    isbn13: str | None = "9780261102217",
    isbn10: str | None = "0261102214",
    description: str | None = "Bilbo goes on an adventure.",
) -> dict:
    identifiers = []
    if isbn10:
        identifiers.append({"type": "ISBN_10", "identifier": isbn10})
    if isbn13:
        identifiers.append({"type": "ISBN_13", "identifier": isbn13})
    volume_info: dict[str, Any] = {
        "title": title,
        "authors": [author],
        "description": description,
        "imageLinks": {"thumbnail": "http://books.google.com/thumb.jpg"},
        "infoLink": "https://books.google.com/books?id=abc",
        "publishedDate": "1937-09-21",
        "industryIdentifiers": identifiers,
    }
    if rating is not None:
        volume_info["averageRating"] = rating
    if ratings_count is not None:
        volume_info["ratingsCount"] = ratings_count
    return {"items": [{"id": "abc", "volumeInfo": volume_info}]}


def openlibrary_payload(
    title: str = "The Hobbit",
    author: str = "J. R. R. Tolkien",
    isbn: str | None = "9780618260300",
    key: str | None = "/works/OL262758W",
) -> dict:
    doc: dict[str, Any] = {
        "title": title,
        "author_name": [author],
        "first_sentence": ["In a hole in the ground there lived a hobbit."],
        "cover_i": 12345,
        "first_publish_year": 1937,
    }
    if isbn:
        doc["isbn"] = [isbn]
    if key:
        doc["key"] = key
    return {"docs": [doc]}


def openlibrary_ratings_url(key: str = "/works/OL262758W") -> str:
    return f"https://openlibrary.org{key}/ratings.json"


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def memory_backend() -> MemoryCacheBackend:
    return MemoryCacheBackend()


@pytest.fixture
def cache(memory_backend: MemoryCacheBackend) -> TieredCache:
    return TieredCache(memory_backend)


@pytest.fixture
def failing_cache() -> TieredCache:
    return TieredCache(FailingCacheBackend(), operation_timeout=0.5)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    """File backed sqlite database with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shelfscan.db'}")
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def rating_store(sqlite_engine) -> RatingStore:
    return RatingStore(sqlite_engine, retry_delays=[0, 0, 0])


@pytest.fixture
def make_context(cache: TieredCache, fake_session: FakeSession):
    def _make(**kwargs) -> ResolutionContext:
        kwargs.setdefault("client_session", fake_session)
        kwargs.setdefault("cache", cache)
        return ResolutionContext(**kwargs)

    return _make
