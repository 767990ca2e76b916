"""
Pydantic schemas for event content sections.
"""

from typing import Optional

from pydantic import Field, field_validator, model_validator

from alumni_api.models.section import SectionType
from alumni_api.schemas.common import CamelModel


class SectionCreate(CamelModel):
    section_type: SectionType
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=20000)
    order_index: Optional[int] = Field(None, ge=0)
    is_visible: bool = True

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Value cannot be blank")
        return value


class SectionUpdate(SectionCreate):
    section_type: Optional[SectionType] = None
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1, max_length=20000)
    is_visible: Optional[bool] = None


class SectionReorder(CamelModel):
    section_ids: list[int] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_unique(self) -> "SectionReorder":
        if len(self.section_ids) != len(set(self.section_ids)):
            raise ValueError("Section ids must be unique")
        return self


class SectionResponse(CamelModel):
    id: int
    event_id: int
    section_type: str
    title: str
    content: str
    order_index: int
    is_visible: bool
