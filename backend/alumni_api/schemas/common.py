"""
Shared schema base and the response envelope.

Every endpoint answers with `{success, message, data}` on success and
`{success: false, message, errors?, code?}` on failure. Field names travel as
camelCase on the wire and snake_case in Python.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str = "Success"
    data: Optional[T] = None


class ErrorResponse(CamelModel):
    success: bool = False
    message: str
    errors: Optional[Any] = None
    code: Optional[str] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        pages = (total + limit - 1) // limit if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )


def ok(data: Any = None, message: str = "Success") -> dict:
    """Success envelope for handlers whose response_model is ApiResponse[...]."""
    return {"success": True, "message": message, "data": data}
