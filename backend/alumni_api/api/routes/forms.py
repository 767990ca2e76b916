"""
Custom registration form endpoints.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.api.deps import get_invalidator
from alumni_api.core.security import require_admin
from alumni_api.db.session import get_db
from alumni_api.models.user import User
from alumni_api.schemas.common import ApiResponse, ok
from alumni_api.schemas.form import EventFormIn, EventFormOut
from alumni_api.services.audit_service import log_activity
from alumni_api.services.cache_invalidation import CacheInvalidator, Mutation
from alumni_api.services.form_service import get_form, upsert_form

router = APIRouter(prefix="/events/{event_id}/form", tags=["Forms"])


@router.get("", response_model=ApiResponse[EventFormOut])
async def get_form_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    return ok(await get_form(db, event_id))


@router.put("", response_model=ApiResponse[EventFormOut])
async def upsert_form_endpoint(
    event_id: int,
    form_data: EventFormIn,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    """Create or replace the event's registration form."""
    form = await upsert_form(db, event_id, form_data)
    await log_activity(db, admin.id, "event_form_save", {"eventId": event_id, "fields": len(form.fields)}, request)
    await db.commit()
    await invalidator.invalidate(Mutation.FORM_CHANGED, event_id=event_id)
    return ok(form, "Registration form saved")
