"""
Pydantic schemas for event registration request/response validation.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from alumni_api.models.registration import MealPreference
from alumni_api.schemas.common import CamelModel, Pagination


class FormResponseIn(CamelModel):
    field_id: int
    response: str = Field(..., max_length=5000)


class RegistrationCreate(CamelModel):
    meal_preference: Optional[MealPreference] = None
    form_responses: list[FormResponseIn] = Field(default_factory=list)
    agree_to_terms: Literal[True]


class RegistrationUpdate(CamelModel):
    meal_preference: Optional[MealPreference] = None
    # None keeps the current responses; a list replaces them wholesale
    form_responses: Optional[list[FormResponseIn]] = None


class FormResponseOut(CamelModel):
    id: int
    field_id: int
    response: str
    version: int


class ModificationWindowOut(CamelModel):
    allowed: bool
    reason: str
    message: str
    deadline: Optional[datetime]
    hours_remaining: Optional[int]


class RegistrationResponse(CamelModel):
    id: int
    event_id: int
    user_id: int
    status: str
    payment_status: str
    meal_preference: Optional[str]
    registration_fee_paid: float
    guest_fees_paid: float
    merchandise_total: float
    donation_amount: float
    total_amount: float
    total_guests: int
    active_guests: int
    modification_count: int
    last_modified_at: Optional[datetime]
    created_at: datetime
    form_responses: list[FormResponseOut] = Field(default_factory=list)


class RegistrationResult(CamelModel):
    registration: RegistrationResponse
    payment_required: bool
    payment_amount: float


class MyRegistrationResponse(CamelModel):
    registration: RegistrationResponse
    can_modify: ModificationWindowOut


class RegistrationAdminRow(RegistrationResponse):
    user_full_name: str
    user_email: str


class RegistrationPage(CamelModel):
    registrations: list[RegistrationAdminRow]
    pagination: Pagination


class RegistrationStats(CamelModel):
    event_id: int
    total: int
    by_status: dict[str, int]
    by_payment_status: dict[str, int]
    meals: dict[str, int]
    guests: dict[str, int]
    revenue: dict[str, float]
    capacity_utilization: Optional[int]
