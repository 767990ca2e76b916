"""
Event page sections. The visible-section listing is cached per event.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.api.deps import get_invalidator
from alumni_api.core.security import require_admin
from alumni_api.db.session import get_db
from alumni_api.models.user import User
from alumni_api.schemas.common import ApiResponse, ok
from alumni_api.schemas.section import SectionCreate, SectionReorder, SectionResponse, SectionUpdate
from alumni_api.services import event_service, section_service
from alumni_api.services.audit_service import log_activity
from alumni_api.services.cache_invalidation import CacheInvalidator, CacheKeys, Mutation
from alumni_api.services.cache_service import get_cache
from alumni_api.services.interfaces.cache import CacheBackend

router = APIRouter(prefix="/events/{event_id}/sections", tags=["Event Sections"])


@router.get("", response_model=ApiResponse[list[SectionResponse]])
async def list_sections(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    cache_key = CacheKeys.sections(event_id)
    cached = await cache.get(cache_key)
    if cached is not None:
        return ok(cached)

    sections = await section_service.list_sections(db, event_id)
    payload = [SectionResponse.model_validate(s).model_dump(mode="json") for s in sections]
    await cache.set(cache_key, payload)
    return ok(payload)


@router.get("/{section_id}", response_model=ApiResponse[SectionResponse])
async def get_section(event_id: int, section_id: int, db: AsyncSession = Depends(get_db)):
    await event_service.get_event(db, event_id, public_only=True)
    return ok(await section_service.get_section(db, event_id, section_id, include_hidden=False))


@router.post("", response_model=ApiResponse[SectionResponse], status_code=status.HTTP_201_CREATED)
async def add_section(
    event_id: int,
    section_data: SectionCreate,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    section = await section_service.add_section(db, event_id, section_data)
    await log_activity(
        db, admin.id, "event_section_add",
        {"eventId": event_id, "sectionId": section.id, "sectionType": section.section_type},
        request,
    )
    await db.commit()
    await invalidator.invalidate(Mutation.SECTION_CHANGED, event_id=event_id)
    return ok(section, "Section added successfully")


@router.post("/reorder", response_model=ApiResponse[list[SectionResponse]])
async def reorder_sections(
    event_id: int,
    reorder: SectionReorder,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    sections = await section_service.reorder_sections(db, event_id, reorder)
    await log_activity(
        db, admin.id, "event_sections_reorder", {"eventId": event_id, "sectionIds": reorder.section_ids}, request
    )
    await db.commit()
    await invalidator.invalidate(Mutation.SECTION_CHANGED, event_id=event_id)
    return ok(sections, "Sections reordered successfully")


@router.put("/{section_id}", response_model=ApiResponse[SectionResponse])
async def update_section(
    event_id: int,
    section_id: int,
    section_data: SectionUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    section = await section_service.update_section(db, event_id, section_id, section_data)
    await log_activity(
        db, admin.id, "event_section_update",
        {"eventId": event_id, "sectionId": section.id, "fields": sorted(section_data.model_dump(exclude_unset=True))},
        request,
    )
    await db.commit()
    await invalidator.invalidate(Mutation.SECTION_CHANGED, event_id=event_id)
    return ok(section, "Section updated successfully")


@router.delete("/{section_id}", response_model=ApiResponse[None])
async def delete_section(
    event_id: int,
    section_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    await section_service.delete_section(db, event_id, section_id)
    await log_activity(db, admin.id, "event_section_delete", {"eventId": event_id, "sectionId": section_id}, request)
    await db.commit()
    await invalidator.invalidate(Mutation.SECTION_CHANGED, event_id=event_id)
    return ok(None, "Section deleted successfully")
