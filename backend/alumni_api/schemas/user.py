"""
Pydantic schemas for user-related request/response validation.
"""

from datetime import datetime
from pydantic import EmailStr, Field

from alumni_api.schemas.common import CamelModel


class UserCreate(CamelModel):
    email: EmailStr
    full_name: str = Field(..., min_length=2, max_length=150)
    password: str = Field(..., min_length=8, max_length=128)


class UserLogin(CamelModel):
    email: EmailStr
    password: str


class UserResponse(CamelModel):
    id: int
    email: str
    full_name: str
    role: str
    is_active: bool
    created_at: datetime


class Token(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
