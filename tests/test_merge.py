"""
Tests for the field-merge policy.
"""

from urllib.parse import parse_qs, urlparse

from shelfscan.internal.merge import (
    NO_DESCRIPTION,
    NO_RATING,
    amazon_url,
    goodreads_url,
    merge_book_data,
)
from shelfscan.internal.models import BookQuery, ProviderRecord, SourceEnum

QUERY = BookQuery(title="Dune", author="Herbert")


def google(**kwargs) -> ProviderRecord:
    values = {
        "source": SourceEnum.bib_a,
        "title": "Dune",
        "author": "Frank Herbert",
        "rating": 4.0,
        "ratings_count": 50,
        "description": "Short.",
        "thumbnail": "https://google/thumb.jpg",
        "isbn": "9780441172719",
        "info_link": "https://books.google.com/dune",
        "publish_year": 1965,
    }
    values.update(kwargs)
    return ProviderRecord(**values)


def openlibrary(**kwargs) -> ProviderRecord:
    values = {
        "source": SourceEnum.bib_b,
        "title": "Dune (Dune Chronicles #1)",
        "author": "Frank Herbert",
        "rating": 3.0,
        "ratings_count": 10,
        "description": "A much longer description of the desert planet.",
        "thumbnail": "https://covers.openlibrary.org/b/id/1-M.jpg",
        "isbn": "0441013597",
        "publish_year": 1990,
    }
    values.update(kwargs)
    return ProviderRecord(**values)


def ratings(rating: float = 4.5, ratings_count: int = 900) -> ProviderRecord:
    return ProviderRecord(
        source=SourceEnum.ratings, rating=rating, ratings_count=ratings_count
    )


class TestRatingPriority:
    """Rating store > Google Books > OpenLibrary."""

    def test_rating_store_wins(self):
        book = merge_book_data(QUERY, google(), openlibrary(), ratings())

        assert book is not None
        assert book.rating == 4.5
        assert book.ratings_count == 900
        assert "Goodreads" in book.rating_source
        assert "900" in book.rating_source

    def test_google_when_no_store_rating(self):
        book = merge_book_data(QUERY, google(), openlibrary(), ratings(0, 0))

        assert book is not None
        assert book.rating == 4.0
        assert book.rating_source == "Google Books (50 reviews)"

    def test_openlibrary_last(self):
        book = merge_book_data(QUERY, google(rating=0, ratings_count=0), openlibrary())

        assert book is not None
        assert book.rating == 3.0
        assert book.rating_source == "Open Library (10 reviews)"

    def test_thousands_separator(self):
        book = merge_book_data(QUERY, google(), None, ratings(4.2, 1234567))
        assert book is not None
        assert book.rating_source == "Goodreads (1,234,567 reviews)"

    def test_no_rating_anywhere(self):
        book = merge_book_data(
            QUERY, google(rating=0, ratings_count=0), openlibrary(rating=0, ratings_count=0)
        )

        assert book is not None
        assert book.rating == 0
        assert book.ratings_count == 0
        assert book.rating_source == NO_RATING


class TestFieldMerge:
    """Tests for primary/secondary field selection."""

    def test_google_is_primary(self):
        book = merge_book_data(QUERY, google(), openlibrary())

        assert book is not None
        assert book.title == "Dune"
        assert book.thumbnail == "https://google/thumb.jpg"
        assert book.isbn == "9780441172719"
        assert book.publish_year == 1965
        assert book.info_link == "https://books.google.com/dune"

    def test_secondary_fills_gaps(self):
        book = merge_book_data(
            QUERY, google(thumbnail=None, isbn=None, publish_year=None), openlibrary()
        )

        assert book is not None
        assert book.thumbnail == "https://covers.openlibrary.org/b/id/1-M.jpg"
        assert book.isbn == "0441013597"
        assert book.publish_year == 1990

    def test_longer_description_wins(self):
        book = merge_book_data(QUERY, google(), openlibrary())
        assert book is not None
        assert book.description == "A much longer description of the desert planet."

        book = merge_book_data(
            QUERY, google(description="A long Google description."), openlibrary(description="Short")
        )
        assert book is not None
        assert book.description == "A long Google description."

    def test_missing_description(self):
        book = merge_book_data(QUERY, google(description=None), openlibrary(description=None))
        assert book is not None
        assert book.description == NO_DESCRIPTION

    def test_openlibrary_only(self):
        book = merge_book_data(QUERY, None, openlibrary())

        assert book is not None
        assert book.title == "Dune (Dune Chronicles #1)"
        assert book.info_link is None
        assert book.sources == ["Open Library"]

    def test_query_fallbacks(self):
        book = merge_book_data(QUERY, google(title=None, author=None), None)
        assert book is not None
        assert book.title == "Dune"
        assert book.author == "Herbert"

    def test_sources_in_query_order(self):
        book = merge_book_data(QUERY, google(), openlibrary(), ratings())
        assert book is not None
        assert book.sources == ["Google Books", "Open Library", "Goodreads"]

    def test_nothing_found(self):
        assert merge_book_data(QUERY, None, None, None) is None


class TestLinks:
    """Tests for the Goodreads and Amazon links."""

    def test_goodreads_by_isbn(self):
        assert (
            goodreads_url(QUERY, "9780441172719")
            == "https://www.goodreads.com/book/isbn/9780441172719"
        )

    def test_goodreads_search(self):
        url = goodreads_url(QUERY, None)
        assert url.startswith("https://www.goodreads.com/search?")
        assert parse_qs(urlparse(url).query) == {"q": ["Dune Herbert"]}

    def test_amazon_direct_link_from_isbn13(self):
        assert (
            amazon_url(QUERY, "9780441172719", "tag-20")
            == "https://www.amazon.com/dp/0441172717?tag=tag-20"
        )

    def test_amazon_direct_link_from_isbn10(self):
        assert (
            amazon_url(QUERY, "0441172717", "tag-20")
            == "https://www.amazon.com/dp/0441172717?tag=tag-20"
        )

    def test_amazon_search_for_979(self):
        url = amazon_url(QUERY, "9791234567896", "tag-20")
        params = parse_qs(urlparse(url).query)
        assert url.startswith("https://www.amazon.com/s?")
        assert params == {"k": ["Dune Herbert 9791234567896"], "tag": ["tag-20"]}

    def test_amazon_search_without_isbn(self):
        url = amazon_url(QUERY, None, "tag-20")
        assert parse_qs(urlparse(url).query) == {"k": ["Dune Herbert"], "tag": ["tag-20"]}

    def test_merged_book_uses_affiliate_tag(self):
        book = merge_book_data(QUERY, google(), None, affiliate_tag="mine-21")
        assert book is not None
        assert book.amazon_url.endswith("?tag=mine-21")
        assert book.goodreads_url == "https://www.goodreads.com/book/isbn/9780441172719"
