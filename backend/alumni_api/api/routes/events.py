"""
Event endpoints with Redis caching on the list and detail reads.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.api.deps import get_invalidator
from alumni_api.core.logging import get_logger
from alumni_api.core.security import require_admin
from alumni_api.db.session import get_db
from alumni_api.models.event import EventStatus
from alumni_api.models.user import User
from alumni_api.schemas.common import ApiResponse, Pagination, ok
from alumni_api.schemas.event import (
    EventCreate,
    EventListResponse,
    EventResponse,
    EventStatusUpdate,
    EventUpdate,
    RegistrationStatusResponse,
)
from alumni_api.services.audit_service import log_activity
from alumni_api.services.cache_invalidation import CacheInvalidator, CacheKeys, Mutation
from alumni_api.services.cache_service import get_cache
from alumni_api.services.interfaces.cache import CacheBackend
from alumni_api.services import event_service

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=ApiResponse[EventListResponse])
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    upcoming_only: bool = Query(False, alias="upcomingOnly"),
    event_status: Optional[EventStatus] = Query(None, alias="status"),
    category: Optional[str] = Query(None, max_length=50, description="Category id or name"),
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    """
    List published events with pagination, optionally narrowed to one category.
    Results are cached in Redis for 5 minutes and evicted by every event or
    registration mutation.
    """
    status_value = event_status.value if event_status else None
    category = category.strip().upper() if category else None
    cache_key = CacheKeys.event_list(page, limit, upcoming_only, status_value, category)

    cached = await cache.get(cache_key)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return ok(EventListResponse.model_validate(cached))

    events, total = await event_service.list_events(
        db, page=page, limit=limit, upcoming_only=upcoming_only, status=status_value, category=category
    )
    response = EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        pagination=Pagination.build(total, page, limit),
        cached=False,
    )
    await cache.set(cache_key, response.model_dump(mode="json"))
    return ok(response)


@router.get("/{event_id}", response_model=ApiResponse[EventResponse])
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    cache_key = CacheKeys.event(event_id)
    cached = await cache.get(cache_key)
    if cached:
        return ok(EventResponse.model_validate(cached))

    event = await event_service.get_event(db, event_id, public_only=True)
    response = EventResponse.model_validate(event)
    await cache.set(cache_key, response.model_dump(mode="json"))
    return ok(response)


@router.get("/{event_id}/registration-status", response_model=ApiResponse[RegistrationStatusResponse])
async def registration_status_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Derived on every call; never cached."""
    return ok(await event_service.get_registration_status(db, event_id))


@router.post("", response_model=ApiResponse[EventResponse], status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    event = await event_service.create_event(db, event_data, admin.id)
    await log_activity(db, admin.id, "event_create", {"eventId": event.id, "title": event.title}, request)
    await db.commit()
    await invalidator.invalidate(Mutation.EVENT_CREATED, event_id=event.id)
    return ok(event, "Event created successfully")


@router.put("/{event_id}", response_model=ApiResponse[EventResponse])
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    event, previous_slug = await event_service.update_event(db, event_id, event_data)
    await log_activity(
        db, admin.id, "event_update",
        {"eventId": event.id, "fields": sorted(event_data.model_dump(exclude_unset=True))},
        request,
    )
    await db.commit()
    await invalidator.invalidate(Mutation.EVENT_UPDATED, event_id=event.id, slug=previous_slug)
    if previous_slug != event.slug:
        await invalidator.invalidate(Mutation.EVENT_UPDATED, event_id=event.id, slug=event.slug)
    return ok(event, "Event updated successfully")


@router.patch("/{event_id}/status", response_model=ApiResponse[EventResponse])
async def update_event_status_endpoint(
    event_id: int,
    status_data: EventStatusUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    event = await event_service.update_event_status(db, event_id, status_data.status)
    await log_activity(db, admin.id, "event_status_change", {"eventId": event.id, "status": event.status}, request)
    await db.commit()
    await invalidator.invalidate(Mutation.EVENT_STATUS_CHANGED, event_id=event.id, slug=event.slug)
    return ok(event, f"Event status updated to {event.status}")


@router.delete("/{event_id}", response_model=ApiResponse[None])
async def delete_event_endpoint(
    event_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    event = await event_service.delete_event(db, event_id)
    await log_activity(db, admin.id, "event_delete", {"eventId": event_id, "title": event.title}, request)
    await db.commit()
    await invalidator.invalidate(Mutation.EVENT_DELETED, event_id=event_id, slug=event.slug)
    return ok(None, "Event deleted successfully")
