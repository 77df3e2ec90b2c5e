"""Review schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from bookreview.schemas.book import BookResponse, BookSummary
from bookreview.schemas.common import CamelModel
from bookreview.schemas.user import UserSummary
from bookreview.services.pagination import Pagination


class ReviewCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: int = Field(..., ge=1, le=5)
    review_text: str = Field(..., min_length=10, max_length=1000)


class ReviewUpdate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: Optional[int] = Field(None, ge=1, le=5)
    review_text: Optional[str] = Field(None, min_length=10, max_length=1000)


class ReviewResponse(CamelModel):
    id: int
    book_id: int
    user_id: int
    rating: int
    review_text: str
    user: UserSummary
    book: BookSummary
    likes: list[int] = []
    like_count: int = 0
    created_at: datetime
    updated_at: datetime

    @field_validator("likes", mode="before")
    @classmethod
    def like_user_ids(cls, value):
        return [getattr(like, "user_id", like) for like in value or []]


class ReviewPayload(CamelModel):
    review: ReviewResponse


class ReviewListPayload(CamelModel):
    reviews: list[ReviewResponse]
    pagination: Pagination


class BookDetailPayload(CamelModel):
    book: BookResponse
    reviews: list[ReviewResponse]
    reviews_pagination: Pagination


class LikePayload(CamelModel):
    liked: bool
    likes: int


class ReviewStats(CamelModel):
    average_rating: float
    total_reviews: int
    rating_distribution: dict[str, int]


class ReviewStatsPayload(CamelModel):
    stats: ReviewStats
