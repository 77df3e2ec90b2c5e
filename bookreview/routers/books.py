"""Book routes — public catalog reads and search, creator-only writes."""

from __future__ import annotations

from typing import Literal, Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookreview.auth.dependencies import ensure_owner, get_current_user
from bookreview.database import get_db
from bookreview.errors import BadRequest, Conflict, NotFound
from bookreview.models.book import Book
from bookreview.models.review import Review, ReviewLike
from bookreview.models.user import User
from bookreview.routers.params import MAX_PAGE, Page, ResourceId
from bookreview.schemas.book import (
    BookCreate,
    BookListPayload,
    BookPayload,
    BookResponse,
    BookUpdate,
    SearchPayload,
)
from bookreview.schemas.common import ApiResponse, success
from bookreview.schemas.review import BookDetailPayload, ReviewResponse
from bookreview.services.pagination import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    NESTED_REVIEW_LIMIT,
    paginate,
)

logger = structlog.get_logger()
router = APIRouter(tags=["Books"])

# Columns a client may clear by sending null; the rest keep their value
NULLABLE_FIELDS = {"isbn"}


async def get_book_or_404(db: AsyncSession, book_id: int) -> Book:
    result = await db.execute(select(Book).where(Book.id == book_id))
    book = result.scalar_one_or_none()
    if not book:
        raise NotFound("Book not found")
    return book


@router.post(
    "/books",
    response_model=ApiResponse[BookPayload],
    status_code=status.HTTP_201_CREATED,
)
async def create_book(
    data: BookCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Add a book to the catalog."""
    existing = await db.execute(
        select(Book.id).where(
            func.lower(Book.title) == data.title.lower(),
            func.lower(Book.author) == data.author.lower(),
        )
    )
    if existing.first():
        raise Conflict("A book with this title and author already exists")

    book = Book(**data.model_dump(), creator=current_user)
    db.add(book)
    await db.flush()

    logger.info("book_created", book_id=book.id, created_by=current_user.id)

    return success({"book": BookResponse.model_validate(book)}, "Book created successfully")


@router.get("/books", response_model=ApiResponse[BookListPayload])
async def list_books(
    page: Page = 1,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    author: Optional[str] = Query(None, max_length=100),
    genre: Optional[str] = Query(None, max_length=50),
    db: AsyncSession = Depends(get_db),
):
    """Paginated book listing, newest first, with optional author/genre filters."""
    query = select(Book)

    if author and author.strip():
        query = query.where(Book.author.icontains(author.strip(), autoescape=True))
    if genre and genre.strip():
        query = query.where(Book.genre.icontains(genre.strip(), autoescape=True))

    query = query.order_by(Book.created_at.desc(), Book.id.desc())
    books, pagination = await paginate(db, query, page, limit)

    return success(
        {
            "books": [BookResponse.model_validate(b) for b in books],
            "pagination": pagination,
        }
    )


@router.get("/search", response_model=ApiResponse[SearchPayload])
async def search_books(
    q: Optional[str] = Query(None, max_length=100),
    search_type: Literal["title", "author", "both"] = Query("both", alias="type"),
    page: Page = 1,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: AsyncSession = Depends(get_db),
):
    """Search books by title and/or author, best rated first."""
    term = (q or "").strip()
    if not term:
        raise BadRequest("Search term is required")

    title_match = Book.title.icontains(term, autoescape=True)
    author_match = Book.author.icontains(term, autoescape=True)
    if search_type == "title":
        condition = title_match
    elif search_type == "author":
        condition = author_match
    else:
        condition = or_(title_match, author_match)

    query = (
        select(Book)
        .where(condition)
        .order_by(Book.average_rating.desc(), Book.created_at.desc(), Book.id.desc())
    )
    books, pagination = await paginate(db, query, page, limit)

    return success(
        {
            "results": [BookResponse.model_validate(b) for b in books],
            "search_term": term,
            "search_type": search_type,
            "pagination": pagination,
        }
    )


@router.get("/books/{book_id}", response_model=ApiResponse[BookDetailPayload])
async def get_book(
    book_id: ResourceId,
    review_page: int = Query(1, ge=1, le=MAX_PAGE, alias="reviewPage"),
    review_limit: int = Query(NESTED_REVIEW_LIMIT, ge=1, le=MAX_LIMIT, alias="reviewLimit"),
    db: AsyncSession = Depends(get_db),
):
    """A single book with the newest page of its reviews."""
    book = await get_book_or_404(db, book_id)

    query = (
        select(Review)
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    reviews, pagination = await paginate(db, query, review_page, review_limit)

    return success(
        {
            "book": BookResponse.model_validate(book),
            "reviews": [ReviewResponse.model_validate(r) for r in reviews],
            "reviews_pagination": pagination,
        }
    )


@router.put("/books/{book_id}", response_model=ApiResponse[BookPayload])
async def update_book(
    book_id: ResourceId,
    data: BookUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update a book (creator only)."""
    book = await get_book_or_404(db, book_id)
    ensure_owner(current_user, book.created_by, "You can only update books you created")

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(book, field, value)

    await db.flush()
    logger.info("book_updated", book_id=book.id, fields=sorted(update_data))

    return success({"book": BookResponse.model_validate(book)}, "Book updated successfully")


@router.delete("/books/{book_id}", response_model=ApiResponse[None])
async def delete_book(
    book_id: ResourceId,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a book and every review of it (creator only)."""
    book = await get_book_or_404(db, book_id)
    ensure_owner(current_user, book.created_by, "You can only delete books you created")

    review_ids = select(Review.id).where(Review.book_id == book_id)
    await db.execute(
        delete(ReviewLike)
        .where(ReviewLike.review_id.in_(review_ids))
        .execution_options(synchronize_session=False)
    )
    removed = await db.execute(
        delete(Review)
        .where(Review.book_id == book_id)
        .execution_options(synchronize_session=False)
    )
    await db.delete(book)
    await db.flush()

    logger.info("book_deleted", book_id=book_id, reviews_removed=removed.rowcount)

    return success(message="Book and associated reviews deleted successfully")
