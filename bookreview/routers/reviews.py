"""Review routes — one review per user per book, likes, and rating stats."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bookreview.auth.dependencies import ensure_owner, get_current_user
from bookreview.database import get_db
from bookreview.errors import Conflict, NotFound
from bookreview.models.review import Review, ReviewLike
from bookreview.models.user import User
from bookreview.routers.books import get_book_or_404
from bookreview.routers.params import Page, ResourceId
from bookreview.schemas.common import ApiResponse, success
from bookreview.schemas.review import (
    LikePayload,
    ReviewCreate,
    ReviewListPayload,
    ReviewPayload,
    ReviewResponse,
    ReviewStatsPayload,
    ReviewUpdate,
)
from bookreview.services.pagination import DEFAULT_LIMIT, MAX_LIMIT, paginate
from bookreview.services.ratings import recompute_book_rating, review_stats

logger = structlog.get_logger()
router = APIRouter(tags=["Reviews"])

DUPLICATE_REVIEW = "You have already reviewed this book"


async def get_review_or_404(db: AsyncSession, review_id: int) -> Review:
    result = await db.execute(select(Review).where(Review.id == review_id))
    review = result.scalar_one_or_none()
    if not review:
        raise NotFound("Review not found")
    return review


async def has_reviewed(db: AsyncSession, book_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(Review.id).where(Review.book_id == book_id, Review.user_id == user_id)
    )
    return result.first() is not None


def _review_list(reviews, pagination) -> dict:
    return {
        "reviews": [ReviewResponse.model_validate(r) for r in reviews],
        "pagination": pagination,
    }


@router.post(
    "/books/{book_id}/reviews",
    response_model=ApiResponse[ReviewPayload],
    status_code=status.HTTP_201_CREATED,
)
async def create_review(
    book_id: ResourceId,
    data: ReviewCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Submit the current user's review of a book."""
    book = await get_book_or_404(db, book_id)

    if await has_reviewed(db, book_id, current_user.id):
        raise Conflict(DUPLICATE_REVIEW)

    review = Review(
        book=book,
        user=current_user,
        rating=data.rating,
        review_text=data.review_text,
        likes=[],
    )
    db.add(review)
    try:
        await db.flush()
    except IntegrityError as exc:
        # The unique (book, user) constraint caught a concurrent submission
        raise Conflict(DUPLICATE_REVIEW) from exc

    await recompute_book_rating(db, book_id)
    logger.info("review_created", review_id=review.id, book_id=book_id, user_id=current_user.id)

    return success(
        {"review": ReviewResponse.model_validate(review)}, "Review submitted successfully"
    )


@router.get("/books/{book_id}/reviews", response_model=ApiResponse[ReviewListPayload])
async def list_book_reviews(
    book_id: ResourceId,
    page: Page = 1,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: AsyncSession = Depends(get_db),
):
    """Reviews of one book, newest first."""
    await get_book_or_404(db, book_id)

    query = (
        select(Review)
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    reviews, pagination = await paginate(db, query, page, limit)
    return success(_review_list(reviews, pagination))


@router.get("/books/{book_id}/reviews/stats", response_model=ApiResponse[ReviewStatsPayload])
async def get_review_stats(book_id: ResourceId, db: AsyncSession = Depends(get_db)):
    """Average rating, review count, and the 1-5 star histogram of a book."""
    await get_book_or_404(db, book_id)
    return success({"stats": await review_stats(db, book_id)})


@router.get("/reviews/user/{user_id}", response_model=ApiResponse[ReviewListPayload])
async def list_user_reviews(
    user_id: ResourceId,
    page: Page = 1,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: AsyncSession = Depends(get_db),
):
    """Reviews written by one user, newest first."""
    if await db.get(User, user_id) is None:
        raise NotFound("User not found")

    query = (
        select(Review)
        .where(Review.user_id == user_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    reviews, pagination = await paginate(db, query, page, limit)
    return success(_review_list(reviews, pagination))


@router.get("/reviews/my-reviews", response_model=ApiResponse[ReviewListPayload])
async def list_my_reviews(
    page: Page = 1,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """The current user's reviews, newest first."""
    query = (
        select(Review)
        .where(Review.user_id == current_user.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    reviews, pagination = await paginate(db, query, page, limit)
    return success(_review_list(reviews, pagination))


@router.get("/reviews/{review_id}", response_model=ApiResponse[ReviewPayload])
async def get_review(review_id: ResourceId, db: AsyncSession = Depends(get_db)):
    review = await get_review_or_404(db, review_id)
    return success({"review": ReviewResponse.model_validate(review)})


@router.put("/reviews/{review_id}", response_model=ApiResponse[ReviewPayload])
async def update_review(
    review_id: ResourceId,
    data: ReviewUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update a review (author only) and refresh the book's rating."""
    review = await get_review_or_404(db, review_id)
    ensure_owner(current_user, review.user_id, "You can only update your own reviews")

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(review, field, value)

    await db.flush()
    await recompute_book_rating(db, review.book_id)
    logger.info("review_updated", review_id=review.id, fields=sorted(update_data))

    return success(
        {"review": ReviewResponse.model_validate(review)}, "Review updated successfully"
    )


@router.delete("/reviews/{review_id}", response_model=ApiResponse[None])
async def delete_review(
    review_id: ResourceId,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a review (author only) and refresh the book's rating."""
    review = await get_review_or_404(db, review_id)
    ensure_owner(current_user, review.user_id, "You can only delete your own reviews")

    book_id = review.book_id
    await db.delete(review)
    await db.flush()
    await recompute_book_rating(db, book_id)
    logger.info("review_deleted", review_id=review_id, book_id=book_id)

    return success(message="Review deleted successfully")


@router.post("/reviews/{review_id}/like", response_model=ApiResponse[LikePayload])
async def toggle_like(
    review_id: ResourceId,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Like the review if the current user has not yet, otherwise unlike it."""
    review = await get_review_or_404(db, review_id)

    existing = next((like for like in review.likes if like.user_id == current_user.id), None)
    if existing is None:
        review.likes.append(ReviewLike(user_id=current_user.id))
    else:
        review.likes.remove(existing)

    try:
        await db.flush()
    except IntegrityError as exc:
        raise Conflict("Like was already recorded") from exc

    liked = existing is None
    return success(
        {"liked": liked, "likes": review.like_count},
        "Review liked" if liked else "Review unliked",
    )
