"""
Pydantic schemas for post-event feedback forms, submissions and analytics.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import Field, model_validator

from alumni_api.models.feedback import FeedbackFieldType
from alumni_api.schemas.common import CamelModel, Pagination

OPTION_TYPES = {FeedbackFieldType.SELECT, FeedbackFieldType.RADIO, FeedbackFieldType.CHECKBOX}

AnswerValue = Union[int, float, str, list[str]]


class FeedbackFieldIn(CamelModel):
    field_name: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-zA-Z0-9_]+$")
    field_label: str = Field(..., min_length=1, max_length=255)
    field_type: FeedbackFieldType = FeedbackFieldType.TEXT
    options: Optional[list[str]] = None
    is_required: bool = False
    min_value: Optional[int] = None
    max_value: Optional[int] = None

    @model_validator(mode="after")
    def check_field(self) -> "FeedbackFieldIn":
        if self.field_type in OPTION_TYPES and not self.options:
            raise ValueError(f"{self.field_type.value} fields need at least one option")
        if self.field_type == FeedbackFieldType.RATING:
            self.min_value = 1 if self.min_value is None else self.min_value
            self.max_value = 5 if self.max_value is None else self.max_value
            if self.min_value >= self.max_value:
                raise ValueError("Rating maximum must be greater than its minimum")
        return self


class FeedbackFormIn(CamelModel):
    title: str = Field("Event Feedback", min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    allow_anonymous: bool = True
    show_after_event: bool = True
    close_after_hours: int = Field(168, ge=1, le=24 * 90)
    completion_message: str = Field("Thank you for your feedback!", min_length=1, max_length=500)
    is_active: bool = True
    # None leaves the current fields untouched
    fields: Optional[list[FeedbackFieldIn]] = None

    @model_validator(mode="after")
    def check_unique_names(self) -> "FeedbackFormIn":
        names = [field.field_name for field in self.fields or []]
        if len(names) != len(set(names)):
            raise ValueError("Field names must be unique within a form")
        return self


class FeedbackFieldResponse(CamelModel):
    id: int
    field_name: str
    field_label: str
    field_type: str
    options: Optional[list[str]]
    is_required: bool
    min_value: Optional[int]
    max_value: Optional[int]
    order_index: int


class FeedbackFormOut(CamelModel):
    id: int
    event_id: int
    title: str
    description: Optional[str]
    allow_anonymous: bool
    show_after_event: bool
    close_after_hours: int
    completion_message: str
    is_active: bool
    fields: list[FeedbackFieldResponse]


class FeedbackSubmit(CamelModel):
    # Keyed by field id
    responses: dict[int, AnswerValue]
    is_anonymous: bool = False


class FeedbackReceipt(CamelModel):
    completion_message: str
    responses_submitted: int
    is_anonymous: bool


class FeedbackAnswer(CamelModel):
    id: int
    field_id: int
    field_label: str
    field_type: str
    response: str
    is_anonymous: bool
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    submitted_at: datetime


class FeedbackResponseList(CamelModel):
    responses: list[FeedbackAnswer]
    pagination: Pagination


class RatingBucket(CamelModel):
    count: int
    percentage: int


class FeedbackAnalytics(CamelModel):
    total_responses: int
    anonymous_responses: int
    identified_responses: int
    completion_rate: float
    average_rating: Optional[float]
    rating_distribution: dict[str, RatingBucket]
