"""
Guest endpoints on the current user's registration.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.api.deps import get_invalidator
from alumni_api.core.security import get_current_user
from alumni_api.db.session import get_db
from alumni_api.models.user import User
from alumni_api.schemas.common import ApiResponse, ok
from alumni_api.schemas.guest import GuestChangeResult, GuestCreate, GuestResponse, GuestUpdate
from alumni_api.services import guest_service
from alumni_api.services.cache_invalidation import CacheInvalidator
from alumni_api.services.notification_service import NotificationDispatcher, get_notification_dispatcher

router = APIRouter(prefix="/events/{event_id}/guests", tags=["Guests"])


@router.get("", response_model=ApiResponse[list[GuestResponse]])
async def list_guests(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ok(await guest_service.list_guests(db, event_id, user.id))


@router.post("", response_model=ApiResponse[GuestChangeResult], status_code=status.HTTP_201_CREATED)
async def add_guest(
    event_id: int,
    guest_data: GuestCreate,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Add a guest; the guest fee is added to the registration total."""
    result = await guest_service.add_guest(db, event_id, user, guest_data, invalidator, notifications, request)
    return ok(result, "Guest added successfully")


@router.put("/{guest_id}", response_model=ApiResponse[GuestResponse])
async def update_guest(
    event_id: int,
    guest_id: int,
    guest_data: GuestUpdate,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    guest = await guest_service.update_guest(db, event_id, user, guest_id, guest_data, invalidator, request)
    return ok(guest, "Guest updated successfully")


@router.delete("/{guest_id}", response_model=ApiResponse[GuestChangeResult])
async def cancel_guest(
    event_id: int,
    guest_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    """Cancel a guest. The fee is kept as a donation."""
    result = await guest_service.cancel_guest(db, event_id, user, guest_id, invalidator, request)
    return ok(result, "Guest cancelled. The guest fee has been kept as a donation.")
