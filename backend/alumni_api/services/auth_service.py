"""
Member sign-up and login. Emails are stored and matched lowercased.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.models.user import User, UserRole
from alumni_api.schemas.user import UserCreate, UserLogin, Token
from alumni_api.core.config import get_settings
from alumni_api.core.exceptions import ConflictError, ForbiddenError, UnauthorizedError
from alumni_api.core.security import hash_password, verify_password, create_access_token
from alumni_api.core.logging import get_logger

logger = get_logger(__name__)


async def _find_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """Create a USER-role account. 409 EMAIL_EXISTS when the address is taken in any casing."""
    if await _find_by_email(db, user_data.email):
        logger.warning("signup_failed", reason="email_exists")
        raise ConflictError("Email already registered", code="EMAIL_EXISTS")

    user = User(
        email=user_data.email.lower(),
        full_name=user_data.full_name.strip(),
        hashed_password=hash_password(user_data.password),
        role=UserRole.USER.value,
    )
    db.add(user)
    await db.flush()

    logger.info("member_signed_up", user_id=user.id)
    return user


def issue_token(user: User) -> Token:
    # Role rides in the token for clients; authorization always re-reads it from the DB
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return Token(access_token=token, expires_in=get_settings().ACCESS_TOKEN_EXPIRE_MINUTES * 60)


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> Token:
    user = await _find_by_email(db, login_data.email)

    if user is None or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", reason="bad_credentials")
        raise UnauthorizedError("Invalid email or password", code="INVALID_CREDENTIALS")

    if not user.is_active:
        logger.warning("login_failed", reason="inactive", user_id=user.id)
        raise ForbiddenError("Account is deactivated", code="ACCOUNT_INACTIVE")

    logger.info("member_logged_in", user_id=user.id)
    return issue_token(user)
