from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from sqlmodel import Field as SQLField
from sqlmodel import SQLModel


class BaseSQLModel(SQLModel):
    pass


class SourceEnum(str, Enum):
    bib_a = "BIB_A"
    bib_b = "BIB_B"
    ratings = "RATINGS"


SOURCE_LABELS: dict[SourceEnum, str] = {
    SourceEnum.bib_a: "Google Books",
    SourceEnum.bib_b: "Open Library",
    SourceEnum.ratings: "Goodreads",
}


class BookQuery(BaseModel, frozen=True):
    """A loosely identified book candidate, e.g. read off a book spine."""

    title: str
    author: str

    @field_validator("title", "author")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def search_text(self) -> str:
        return f"{self.title} {self.author}"


class ProviderRecord(BaseModel, frozen=True):
    source: SourceEnum
    title: Optional[str] = None
    author: Optional[str] = None
    rating: float = Field(default=0.0, ge=0, le=5)
    """0 means unknown, never zero stars"""
    ratings_count: int = Field(default=0, ge=0)
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    isbn: Optional[str] = None
    info_link: Optional[str] = None
    publish_year: Optional[int] = None

    @property
    def label(self) -> str:
        return SOURCE_LABELS[self.source]


class RatingResult(BaseModel, frozen=True):
    rating: float = Field(ge=0, le=5)
    ratings_count: int = Field(ge=0)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class MatchInfo(_CamelModel):
    shelf: Optional[str] = None
    my_rating: Optional[int] = None
    date_read: Optional[date] = None
    date_added: Optional[date] = None


class MergedBook(_CamelModel):
    """The reconciled record for one resolved query."""

    title: str
    author: str
    rating: float = 0.0
    ratings_count: int = 0
    rating_source: str = "No ratings available"
    description: str = "No description available"
    thumbnail: Optional[str] = None
    isbn: Optional[str] = None
    publish_year: Optional[int] = None
    info_link: Optional[str] = None
    goodreads_url: str
    amazon_url: str
    sources: list[str] = []
    in_reading_list: Optional[bool] = None
    reading_list_info: Optional[MatchInfo] = None


class BatchResult(_CamelModel):
    books: list[MergedBook]
    total_found: int
    total_processed: int


class BookRating(BaseSQLModel, table=True):
    """Community rating dataset, keyed by either ISBN form."""

    __tablename__ = "book_rating"  # pyright: ignore[reportAssignmentType]

    isbn: str = SQLField(primary_key=True)
    rating: float
    ratings_count: int = 0


class ReadingListEntry(BaseSQLModel, table=True):
    """A row of a user's reading list. Owned by the import side; only read here."""

    __tablename__ = "reading_list_entry"  # pyright: ignore[reportAssignmentType]

    id: Optional[int] = SQLField(default=None, primary_key=True)
    user_id: str = SQLField(index=True)
    title: str
    author: str = ""
    isbn: Optional[str] = None
    isbn13: Optional[str] = None
    exclusive_shelf: Optional[str] = None
    my_rating: Optional[int] = None
    date_read: Optional[date] = None
    date_added: Optional[date] = None
