import re
from typing import Sequence

from shelfscan.internal.models import MatchInfo, MergedBook, ReadingListEntry
from shelfscan.internal.sources.isbn_utils import digits_only


def normalize_text(value: str | None) -> str:
    if not value:
        return ""
    return re.sub(r"[^\w\s]", "", value.lower().strip())


def _isbn_matches(book_isbn: str, entry: ReadingListEntry) -> bool:
    if not book_isbn:
        return False
    return book_isbn in (digits_only(entry.isbn), digits_only(entry.isbn13))


def _title_author_matches(title: str, author: str, entry: ReadingListEntry) -> bool:
    if not title or title != normalize_text(entry.title):
        return False
    entry_author = normalize_text(entry.author)
    if author == entry_author:
        return True
    # "jk rowling" vs "rowling"
    if not author or not entry_author:
        return False
    return author in entry_author or entry_author in author


def match_reading_list(
    book: MergedBook, entries: Sequence[ReadingListEntry]
) -> MatchInfo | None:
    """
    Finds the reading list entry for a resolved book. An identifier match
    always wins, otherwise the normalized title must match exactly and the
    authors must match or contain one another.
    """
    book_isbn = digits_only(book.isbn)
    title = normalize_text(book.title)
    author = normalize_text(book.author)

    for entry in entries:
        if _isbn_matches(book_isbn, entry) or _title_author_matches(
            title, author, entry
        ):
            return MatchInfo(
                shelf=entry.exclusive_shelf,
                my_rating=entry.my_rating,
                date_read=entry.date_read,
                date_added=entry.date_added,
            )
    return None


def annotate_book(book: MergedBook, entries: Sequence[ReadingListEntry]) -> MergedBook:
    info = match_reading_list(book, entries)
    return book.model_copy(
        update={"in_reading_list": info is not None, "reading_list_info": info}
    )
