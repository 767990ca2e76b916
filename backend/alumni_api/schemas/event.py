"""
Pydantic schemas for event-related request/response validation.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator, model_validator

from alumni_api.models.event import EventStatus
from alumni_api.schemas.common import CamelModel, Pagination

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class EventBase(CamelModel):
    description: Optional[str] = Field(None, max_length=10000)
    venue: Optional[str] = Field(None, max_length=255)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    registration_start_date: Optional[datetime] = None
    registration_end_date: Optional[datetime] = None
    max_capacity: Optional[int] = Field(None, ge=1)
    category_id: Optional[int] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM format")
        return value


class EventCreate(EventBase):
    title: str = Field(..., min_length=3, max_length=255)
    event_date: datetime
    status: EventStatus = EventStatus.DRAFT

    registration_fee: float = Field(0, ge=0)
    guest_fee: float = Field(0, ge=0)

    has_registration: bool = True
    has_external_link: bool = False
    external_registration_link: Optional[str] = Field(None, max_length=500)
    has_custom_form: bool = False
    has_meals: bool = False
    has_guests: bool = False
    has_donations: bool = False
    has_merchandise: bool = False

    allow_form_modification: bool = True
    form_modification_deadline_hours: int = Field(24, ge=0, le=24 * 30)

    @model_validator(mode="after")
    def check_schedule(self) -> "EventCreate":
        if self.start_time and self.end_time and _minutes(self.start_time) >= _minutes(self.end_time):
            raise ValueError("End time must be after start time")
        if self.registration_start_date and self.registration_end_date:
            if self.registration_start_date >= self.registration_end_date:
                raise ValueError("Registration end date must be after start date")
            if self.registration_end_date > self.event_date:
                raise ValueError("Registration end date cannot be after event date")
        if self.has_external_link and not self.external_registration_link:
            raise ValueError("External registration link is required when external link is enabled")
        return self


class EventUpdate(EventBase):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    event_date: Optional[datetime] = None

    registration_fee: Optional[float] = Field(None, ge=0)
    guest_fee: Optional[float] = Field(None, ge=0)

    has_registration: Optional[bool] = None
    has_external_link: Optional[bool] = None
    external_registration_link: Optional[str] = Field(None, max_length=500)
    has_custom_form: Optional[bool] = None
    has_meals: Optional[bool] = None
    has_guests: Optional[bool] = None
    has_donations: Optional[bool] = None
    has_merchandise: Optional[bool] = None

    allow_form_modification: Optional[bool] = None
    form_modification_deadline_hours: Optional[int] = Field(None, ge=0, le=24 * 30)


class EventStatusUpdate(CamelModel):
    status: EventStatus


class EventResponse(CamelModel):
    id: int
    title: str
    slug: str
    description: Optional[str]
    venue: Optional[str]
    event_date: datetime
    start_time: Optional[str]
    end_time: Optional[str]
    registration_start_date: Optional[datetime]
    registration_end_date: Optional[datetime]
    max_capacity: Optional[int]
    registration_fee: float
    guest_fee: float
    has_registration: bool
    has_external_link: bool
    external_registration_link: Optional[str]
    has_custom_form: bool
    has_meals: bool
    has_guests: bool
    has_donations: bool
    has_merchandise: bool
    allow_form_modification: bool
    form_modification_deadline_hours: Optional[int]
    status: str
    category_id: Optional[int] = None
    created_by_id: int
    created_at: datetime


class EventListResponse(CamelModel):
    events: list[EventResponse]
    pagination: Pagination
    cached: bool = False


class RegistrationStatusResponse(CamelModel):
    event_id: int
    status: str
    can_register: bool
    message: str
    confirmed_registrations: int
    max_capacity: Optional[int]
    external_registration_link: Optional[str] = None
