"""
Book rating aggregates.

A book's ``average_rating``/``total_reviews`` are a cache over its reviews.
They are always recomputed from the full review set, in the same session as
the review write that triggered the recomputation, so both commit together.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookreview.models.book import Book
from bookreview.models.review import Review

logger = structlog.get_logger()

RATING_VALUES = (1, 2, 3, 4, 5)


def rounded_average(total: int, count: int) -> float:
    """Mean of ``count`` ratings summing to ``total``, half-up to one decimal."""
    if not count:
        return 0.0
    mean = Decimal(total) / Decimal(count)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


async def recompute_book_rating(db: AsyncSession, book_id: int) -> Optional[Book]:
    """Recompute and store the rating summary of one book."""
    # Lock the book row first so concurrent recomputations for it serialise
    # and each one aggregates over every committed review.
    result = await db.execute(select(Book).where(Book.id == book_id).with_for_update())
    book = result.scalar_one_or_none()
    if book is None:
        return None

    total, count = (
        await db.execute(
            select(
                func.coalesce(func.sum(Review.rating), 0),
                func.count(Review.id),
            ).where(Review.book_id == book_id)
        )
    ).one()

    book.average_rating = rounded_average(int(total), int(count))
    book.total_reviews = int(count)
    await db.flush()

    logger.info(
        "book_rating_recomputed",
        book_id=book_id,
        average_rating=book.average_rating,
        total_reviews=book.total_reviews,
    )
    return book


async def review_stats(db: AsyncSession, book_id: int) -> dict:
    """Average, count, and a 1..5 histogram of a book's ratings."""
    rows = (
        await db.execute(
            select(Review.rating, func.count(Review.id))
            .where(Review.book_id == book_id)
            .group_by(Review.rating)
        )
    ).all()

    distribution = {str(value): 0 for value in RATING_VALUES}
    total = 0
    count = 0
    for rating, n in rows:
        distribution[str(rating)] = int(n)
        total += int(rating) * int(n)
        count += int(n)

    return {
        "average_rating": rounded_average(total, count),
        "total_reviews": count,
        "rating_distribution": distribution,
    }
