"""
Admin endpoints: event listing across all statuses, registration listing,
statistics, exports and the dashboard.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.core.security import require_admin
from alumni_api.db.session import get_db
from alumni_api.models.event import EventStatus
from alumni_api.models.registration import RegistrationStatus
from alumni_api.schemas.common import ApiResponse, Pagination, ok
from alumni_api.schemas.dashboard import DashboardStats
from alumni_api.schemas.event import EventListResponse, EventResponse
from alumni_api.schemas.merchandise import MerchandiseResponse
from alumni_api.schemas.registration import RegistrationPage, RegistrationStats
from alumni_api.services import event_service, merchandise_service, registration_query_service
from alumni_api.services.cache_invalidation import CacheKeys
from alumni_api.services.cache_service import get_cache
from alumni_api.services.export_service import export_registrations
from alumni_api.services.interfaces.cache import CacheBackend

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/events", response_model=ApiResponse[EventListResponse])
async def list_all_events(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    event_status: Optional[EventStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    events, total = await event_service.list_events(
        db,
        page=page,
        limit=limit,
        status=event_status.value if event_status else None,
        search=search,
        public_only=False,
    )
    return ok(
        EventListResponse(
            events=[EventResponse.model_validate(e) for e in events],
            pagination=Pagination.build(total, page, limit),
        )
    )


@router.get("/events/{event_id}/merchandise", response_model=ApiResponse[list[MerchandiseResponse]])
async def list_all_merchandise(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    """Every item of the event, inactive ones included."""
    cache_key = CacheKeys.merchandise(event_id, include_inactive=True)
    cached = await cache.get(cache_key)
    if cached is not None:
        return ok(cached)

    items = await merchandise_service.list_merchandise(db, event_id, include_inactive=True)
    payload = [MerchandiseResponse.model_validate(item).model_dump(mode="json") for item in items]
    await cache.set(cache_key, payload)
    return ok(payload)


@router.get("/events/{event_id}/registrations", response_model=ApiResponse[RegistrationPage])
async def list_event_registrations(
    event_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    registration_status: Optional[RegistrationStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await registration_query_service.list_registrations(
        db,
        event_id,
        page=page,
        limit=limit,
        status=registration_status.value if registration_status else None,
        search=search,
    )
    return ok({"registrations": rows, "pagination": Pagination.build(total, page, limit)})


@router.get("/events/{event_id}/registrations/stats", response_model=ApiResponse[RegistrationStats])
async def event_registration_stats(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    cache_key = CacheKeys.registration_stats(event_id)
    cached = await cache.get(cache_key)
    if cached:
        return ok(cached)

    stats = RegistrationStats.model_validate(await registration_query_service.registration_stats(db, event_id))
    payload = stats.model_dump(mode="json")
    await cache.set(cache_key, payload)
    return ok(payload)


@router.get("/events/{event_id}/registrations/export")
async def export_event_registrations(
    event_id: int,
    export_format: Literal["csv", "xlsx"] = Query("csv", alias="format"),
    db: AsyncSession = Depends(get_db),
):
    export = await export_registrations(db, event_id, export_format)
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/dashboard", response_model=ApiResponse[DashboardStats])
async def dashboard(
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    cached = await cache.get(CacheKeys.DASHBOARD)
    if cached:
        return ok(cached)

    stats = DashboardStats.model_validate(await registration_query_service.dashboard_stats(db))
    payload = stats.model_dump(mode="json")
    await cache.set(CacheKeys.DASHBOARD, payload)
    return ok(payload)
