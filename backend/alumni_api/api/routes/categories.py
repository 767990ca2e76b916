"""
Event category endpoints. The public listing and detail are cached.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.api.deps import get_invalidator
from alumni_api.core.security import require_admin
from alumni_api.db.session import get_db
from alumni_api.models.user import User
from alumni_api.schemas.category import CategoryCreate, CategoryDetail, CategoryResponse, CategoryUpdate
from alumni_api.schemas.common import ApiResponse, ok
from alumni_api.services import category_service
from alumni_api.services.audit_service import log_activity
from alumni_api.services.cache_invalidation import CacheInvalidator, CacheKeys, Mutation
from alumni_api.services.cache_service import get_cache
from alumni_api.services.interfaces.cache import CacheBackend

router = APIRouter(prefix="/events/categories", tags=["Event Categories"])


@router.get("", response_model=ApiResponse[list[CategoryResponse]])
async def list_categories(db: AsyncSession = Depends(get_db), cache: CacheBackend = Depends(get_cache)):
    cached = await cache.get(CacheKeys.CATEGORIES)
    if cached is not None:
        return ok(cached)

    categories = await category_service.list_categories(db)
    payload = [CategoryResponse.model_validate(c).model_dump(mode="json") for c in categories]
    await cache.set(CacheKeys.CATEGORIES, payload)
    return ok(payload)


@router.get("/{category_id}", response_model=ApiResponse[CategoryDetail])
async def get_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    cache_key = CacheKeys.category(category_id)
    cached = await cache.get(cache_key)
    if cached is not None:
        return ok(CategoryDetail.model_validate(cached))

    detail = CategoryDetail.model_validate(await category_service.get_category_detail(db, category_id))
    await cache.set(cache_key, detail.model_dump(mode="json"))
    return ok(detail)


@router.post("", response_model=ApiResponse[CategoryResponse], status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    category = await category_service.create_category(db, category_data)
    await log_activity(
        db, admin.id, "event_category_create", {"categoryId": category.id, "name": category.name}, request
    )
    await db.commit()
    await invalidator.invalidate(Mutation.CATEGORY_CHANGED, category_id=category.id)
    return ok(category, "Event category created successfully")


@router.put("/{category_id}", response_model=ApiResponse[CategoryResponse])
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    category = await category_service.update_category(db, category_id, category_data)
    await log_activity(
        db, admin.id, "event_category_update",
        {"categoryId": category.id, "fields": sorted(category_data.model_dump(exclude_unset=True))},
        request,
    )
    await db.commit()
    await invalidator.invalidate(Mutation.CATEGORY_CHANGED, category_id=category.id)
    return ok(category, "Event category updated successfully")


@router.delete("/{category_id}", response_model=ApiResponse[None])
async def delete_category(
    category_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    category = await category_service.delete_category(db, category_id)
    await log_activity(
        db, admin.id, "event_category_delete", {"categoryId": category_id, "name": category.name}, request
    )
    await db.commit()
    await invalidator.invalidate(Mutation.CATEGORY_CHANGED, category_id=category_id)
    return ok(None, "Event category deleted successfully")
