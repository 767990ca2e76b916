"""
Post-event feedback endpoints: form management, submission and admin reporting.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.api.deps import get_invalidator
from alumni_api.core.security import get_current_user, require_admin
from alumni_api.db.session import get_db
from alumni_api.models.user import User
from alumni_api.schemas.common import ApiResponse, Pagination, ok
from alumni_api.schemas.feedback import (
    FeedbackAnalytics,
    FeedbackAnswer,
    FeedbackFormIn,
    FeedbackFormOut,
    FeedbackReceipt,
    FeedbackResponseList,
    FeedbackSubmit,
)
from alumni_api.services import feedback_service
from alumni_api.services.audit_service import client_info, log_activity
from alumni_api.services.cache_invalidation import CacheInvalidator, CacheKeys, Mutation
from alumni_api.services.cache_service import get_cache
from alumni_api.services.interfaces.cache import CacheBackend

router = APIRouter(prefix="/events/{event_id}/feedback", tags=["Feedback"])


@router.put("/form", response_model=ApiResponse[FeedbackFormOut])
async def upsert_feedback_form(
    event_id: int,
    form_data: FeedbackFormIn,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    form, created = await feedback_service.upsert_form(db, event_id, form_data)
    await log_activity(
        db, admin.id, "feedback_form_create" if created else "feedback_form_update",
        {"eventId": event_id, "feedbackFormId": form.id, "fieldsCount": len(form.fields)},
        request,
    )
    await db.commit()
    await invalidator.invalidate(Mutation.FEEDBACK_FORM_CHANGED, event_id=event_id)
    return ok(form, f"Feedback form {'created' if created else 'updated'} successfully")


@router.get("/form", response_model=ApiResponse[FeedbackFormOut])
async def get_feedback_form(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Members only see the form inside its feedback window; admins always do."""
    return ok(await feedback_service.get_form(db, event_id, user))


@router.post("", response_model=ApiResponse[FeedbackReceipt])
async def submit_feedback(
    event_id: int,
    submission: FeedbackSubmit,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    ip_address, _ = client_info(request)
    receipt = await feedback_service.submit_feedback(db, event_id, user, submission, ip_address=ip_address)
    # Anonymous submissions leave no trail back to the member
    if not receipt["is_anonymous"]:
        await log_activity(
            db, user.id, "feedback_submit",
            {"eventId": event_id, "responsesCount": receipt["responses_submitted"]},
            request,
        )
    await db.commit()
    await invalidator.invalidate(Mutation.FEEDBACK_SUBMITTED, event_id=event_id)
    return ok(receipt, "Feedback submitted successfully")


@router.get("/my-response", response_model=ApiResponse[list[FeedbackAnswer]])
async def my_feedback(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ok(await feedback_service.get_my_feedback(db, event_id, user))


@router.get("/responses", response_model=ApiResponse[FeedbackResponseList])
async def list_feedback_responses(
    event_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    include_anonymous: bool = Query(True, alias="includeAnonymous"),
    field_id: Optional[int] = Query(None, alias="fieldId"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    answers, total = await feedback_service.list_responses(
        db, event_id, page=page, limit=limit, include_anonymous=include_anonymous, field_id=field_id
    )
    return ok(FeedbackResponseList(responses=answers, pagination=Pagination.build(total, page, limit)))


@router.get("/analytics", response_model=ApiResponse[FeedbackAnalytics])
async def feedback_analytics(
    event_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    cache_key = CacheKeys.feedback_analytics(event_id)
    cached = await cache.get(cache_key)
    if cached is not None:
        return ok(cached)

    analytics = FeedbackAnalytics.model_validate(await feedback_service.get_analytics(db, event_id))
    await cache.set(cache_key, analytics.model_dump(mode="json"))
    return ok(analytics)
