"""Path and query parameters shared by the routers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Path, Query

# Primary keys are 32-bit integers in Postgres
MAX_ID = 2**31 - 1
MAX_PAGE = MAX_ID

ResourceId = Annotated[int, Path(ge=1, le=MAX_ID)]
Page = Annotated[int, Query(ge=1, le=MAX_PAGE)]
