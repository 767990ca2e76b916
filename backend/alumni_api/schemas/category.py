"""
Pydantic schemas for event categories.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from alumni_api.schemas.common import CamelModel
from alumni_api.schemas.event import EventResponse


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: Optional[str]) -> Optional[str]:
        """Names are trimmed and upper-cased so `reunion` and `REUNION ` collide."""
        if value is None:
            return value
        value = value.strip().upper()
        if not value:
            raise ValueError("Category name cannot be blank")
        return value


class CategoryUpdate(CategoryCreate):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    is_active: Optional[bool] = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    description: Optional[str]
    is_active: bool
    event_count: int = 0
    created_at: datetime


class CategoryDetail(CategoryResponse):
    events: list[EventResponse] = Field(default_factory=list)
