"""Offset pagination shared by every listing endpoint."""

from __future__ import annotations

import math
from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookreview.schemas.common import CamelModel

DEFAULT_LIMIT = 10
NESTED_REVIEW_LIMIT = 5
MAX_LIMIT = 100


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    limit: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            limit=limit,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


async def paginate(
    db: AsyncSession, query: Select, page: int, limit: int
) -> tuple[Sequence[Any], Pagination]:
    """Run ``query`` for one page and count the full result set."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    offset = (page - 1) * limit
    result = await db.execute(query.offset(offset).limit(limit))
    return result.scalars().all(), Pagination.build(page, limit, total)
