"""
Book metadata providers.
Google Books and OpenLibrary for bibliographic data.
"""

from shelfscan.internal.sources.isbn_utils import (
    InvalidIsbnFormat,
    digits_only,
    validate_isbn10,
    validate_isbn13,
    isbn10_to_isbn13,
    isbn13_to_isbn10,
    isbn_variants,
    to_isbn10,
    normalize_isbn,
    is_isbn,
)
from shelfscan.internal.sources.google_books_api import fetch_google_books
from shelfscan.internal.sources.openlibrary_api import fetch_openlibrary

__all__ = [
    # ISBN utilities
    "InvalidIsbnFormat",
    "digits_only",
    "validate_isbn10",
    "validate_isbn13",
    "isbn10_to_isbn13",
    "isbn13_to_isbn10",
    "isbn_variants",
    "to_isbn10",
    "normalize_isbn",
    "is_isbn",
    # Providers
    "fetch_google_books",
    "fetch_openlibrary",
]
