"""
Merchandise catalogue endpoints. The active-item listing is cached.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.api.deps import get_invalidator
from alumni_api.core.security import require_admin
from alumni_api.db.session import get_db
from alumni_api.models.user import User
from alumni_api.schemas.common import ApiResponse, ok
from alumni_api.schemas.merchandise import MerchandiseCreate, MerchandiseResponse, MerchandiseUpdate
from alumni_api.services import merchandise_service
from alumni_api.services.audit_service import log_activity
from alumni_api.services.cache_invalidation import CacheInvalidator, CacheKeys, Mutation
from alumni_api.services.cache_service import get_cache
from alumni_api.services.interfaces.cache import CacheBackend

router = APIRouter(prefix="/events/{event_id}/merchandise", tags=["Merchandise"])


@router.get("", response_model=ApiResponse[list[MerchandiseResponse]])
async def list_merchandise(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    cache_key = CacheKeys.merchandise(event_id)
    cached = await cache.get(cache_key)
    if cached is not None:
        return ok(cached)

    items = await merchandise_service.list_merchandise(db, event_id)
    payload = [MerchandiseResponse.model_validate(item).model_dump(mode="json") for item in items]
    await cache.set(cache_key, payload)
    return ok(payload)


@router.post("", response_model=ApiResponse[MerchandiseResponse], status_code=status.HTTP_201_CREATED)
async def create_merchandise(
    event_id: int,
    item_data: MerchandiseCreate,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    item = await merchandise_service.create_item(db, event_id, item_data)
    await log_activity(db, admin.id, "merchandise_create", {"eventId": event_id, "itemId": item.id}, request)
    await db.commit()
    await invalidator.invalidate(Mutation.MERCHANDISE_CHANGED, event_id=event_id)
    return ok(item, "Merchandise item created")


@router.put("/{item_id}", response_model=ApiResponse[MerchandiseResponse])
async def update_merchandise(
    event_id: int,
    item_id: int,
    item_data: MerchandiseUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    item = await merchandise_service.update_item(db, event_id, item_id, item_data)
    await log_activity(db, admin.id, "merchandise_update", {"eventId": event_id, "itemId": item.id}, request)
    await db.commit()
    await invalidator.invalidate(Mutation.MERCHANDISE_CHANGED, event_id=event_id)
    return ok(item, "Merchandise item updated")


@router.delete("/{item_id}", response_model=ApiResponse[None])
async def delete_merchandise(
    event_id: int,
    item_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    await merchandise_service.delete_item(db, event_id, item_id)
    await log_activity(db, admin.id, "merchandise_delete", {"eventId": event_id, "itemId": item_id}, request)
    await db.commit()
    await invalidator.invalidate(Mutation.MERCHANDISE_CHANGED, event_id=event_id)
    return ok(None, "Merchandise item deleted")
