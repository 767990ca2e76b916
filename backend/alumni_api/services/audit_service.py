"""
Activity log writer for admin and user mutations outside the registration
pipeline (the orchestrator writes through its repository).
"""

from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.models.activity_log import ActivityLog


def client_info(request: Optional[Request]) -> tuple[Optional[str], Optional[str]]:
    if request is None:
        return None, None
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


async def log_activity(
    db: AsyncSession,
    user_id: Optional[int],
    action: str,
    details: Optional[dict] = None,
    request: Optional[Request] = None,
) -> ActivityLog:
    ip_address, user_agent = client_info(request)
    entry = ActivityLog(
        user_id=user_id,
        action=action,
        details=details or {},
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    await db.flush()
    return entry
