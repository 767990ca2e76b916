"""
Authentication endpoints: register, login and the current account.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.db.session import get_db
from alumni_api.core.security import get_current_user
from alumni_api.models.user import User
from alumni_api.schemas.common import ApiResponse, ok
from alumni_api.schemas.user import UserCreate, UserResponse, UserLogin, Token
from alumni_api.services.auth_service import register_user, authenticate_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new member account."""
    user = await register_user(db, user_data)
    return ok(user, "Account created successfully")


@router.post("/login", response_model=ApiResponse[Token])
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    token = await authenticate_user(db, login_data)
    return ok(token, "Login successful")


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(user: User = Depends(get_current_user)):
    return ok(user)
