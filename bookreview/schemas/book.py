"""Book schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BeforeValidator, ConfigDict, Field

from bookreview.schemas.common import CamelModel
from bookreview.schemas.user import UserSummary
from bookreview.services.pagination import Pagination

ISBN_PATTERN = r"^[\d-]{10,17}$"


def _not_in_future(value: Optional[date]) -> Optional[date]:
    if value is not None and value > date.today():
        raise ValueError("Publication date cannot be in the future")
    return value


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


PublicationDate = Annotated[date, AfterValidator(_not_in_future)]
Isbn = Annotated[Optional[str], Field(pattern=ISBN_PATTERN), BeforeValidator(_blank_to_none)]


class BookCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    author: str = Field(..., min_length=1, max_length=100)
    genre: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=2000)
    publication_date: PublicationDate
    isbn: Isbn = None


class BookUpdate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    author: Optional[str] = Field(None, min_length=1, max_length=100)
    genre: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    publication_date: Optional[PublicationDate] = None
    isbn: Isbn = None


class BookSummary(CamelModel):
    id: int
    title: str
    author: str
    average_rating: float


class BookResponse(CamelModel):
    id: int
    title: str
    author: str
    genre: str
    description: str
    publication_date: date
    isbn: Optional[str]
    created_by: int
    creator: UserSummary
    average_rating: float
    total_reviews: int
    created_at: datetime
    updated_at: datetime


class BookPayload(CamelModel):
    book: BookResponse


class BookListPayload(CamelModel):
    books: list[BookResponse]
    pagination: Pagination


class SearchPayload(CamelModel):
    results: list[BookResponse]
    search_term: str
    search_type: str
    pagination: Pagination
