"""Pure helpers behind the listing and aggregation endpoints."""

from __future__ import annotations

import pytest

from bookreview.services.pagination import Pagination
from bookreview.services.ratings import rounded_average


class TestRoundedAverage:
    def test_empty_set_is_zero(self):
        assert rounded_average(0, 0) == 0.0

    @pytest.mark.parametrize(
        "total, count, expected",
        [
            (5, 1, 5.0),
            (6, 2, 3.0),
            (13, 4, 3.3),
            (15, 4, 3.8),
            (10, 3, 3.3),
            (11, 3, 3.7),
        ],
    )
    def test_half_up_to_one_decimal(self, total, count, expected):
        assert rounded_average(total, count) == expected


class TestPagination:
    def test_three_pages_of_25(self):
        pages = [Pagination.build(page, 10, 25) for page in (1, 2, 3)]
        assert [p.total_pages for p in pages] == [3, 3, 3]
        assert [p.has_next for p in pages] == [True, True, False]
        assert [p.has_prev for p in pages] == [False, True, True]

    def test_empty_result(self):
        page = Pagination.build(1, 10, 0)
        assert page.total_pages == 0
        assert page.has_next is False
        assert page.has_prev is False

    def test_serialises_camel_case(self):
        dumped = Pagination.build(2, 5, 11).model_dump(by_alias=True)
        assert dumped == {
            "currentPage": 2,
            "totalPages": 3,
            "totalItems": 11,
            "limit": 5,
            "hasNext": True,
            "hasPrev": True,
        }
