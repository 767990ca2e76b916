"""
Pydantic schemas for guest management.
"""

from typing import Optional

from pydantic import EmailStr, Field

from alumni_api.models.registration import MealPreference
from alumni_api.schemas.common import CamelModel


class GuestCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    meal_preference: Optional[MealPreference] = None


class GuestUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    meal_preference: Optional[MealPreference] = None


class GuestResponse(CamelModel):
    id: int
    registration_id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    meal_preference: Optional[str]
    fees_paid: float
    status: str


class GuestTotals(CamelModel):
    active_guests: int
    guest_fees_paid: float
    donation_amount: float
    total_amount: float
    additional_payment_required: bool
    additional_amount: float


class GuestChangeResult(CamelModel):
    guest: GuestResponse
    totals: GuestTotals
