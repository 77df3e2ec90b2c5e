"""Shared schema plumbing: camelCase wire format and the response envelope."""

from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Serialised as camelCase; accepts either camelCase or snake_case input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[DataT]):
    status: str = "success"
    message: Optional[str] = None
    data: Optional[DataT] = None


class FieldError(CamelModel):
    field: str
    message: str


class ErrorResponse(CamelModel):
    status: str = "error"
    message: str
    errors: Optional[list[FieldError]] = None


def success(data: Any = None, message: Optional[str] = None) -> dict:
    return {"status": "success", "message": message, "data": data}
