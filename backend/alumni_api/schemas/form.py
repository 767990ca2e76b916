"""
Pydantic schemas for custom registration forms.
"""

from typing import Optional

from pydantic import Field, model_validator

from alumni_api.models.form import FieldType
from alumni_api.schemas.common import CamelModel

OPTION_TYPES = {FieldType.SELECT, FieldType.RADIO, FieldType.CHECKBOX}


class FormFieldIn(CamelModel):
    field_name: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-zA-Z0-9_]+$")
    field_label: str = Field(..., min_length=1, max_length=255)
    field_type: FieldType = FieldType.TEXT
    options: Optional[list[str]] = None
    is_required: bool = False

    @model_validator(mode="after")
    def check_options(self) -> "FormFieldIn":
        if self.field_type in OPTION_TYPES and not self.options:
            raise ValueError(f"{self.field_type.value} fields need at least one option")
        return self


class EventFormIn(CamelModel):
    title: str = Field("Registration Form", min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    fields: list[FormFieldIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_names(self) -> "EventFormIn":
        names = [field.field_name for field in self.fields]
        if len(names) != len(set(names)):
            raise ValueError("Field names must be unique within a form")
        return self


class FormFieldResponse(CamelModel):
    id: int
    field_name: str
    field_label: str
    field_type: str
    options: Optional[list[str]]
    is_required: bool
    order_index: int


class EventFormOut(CamelModel):
    id: int
    event_id: int
    title: str
    description: Optional[str]
    is_active: bool
    fields: list[FormFieldResponse]
