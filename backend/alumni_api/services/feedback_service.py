"""
Post-event feedback: the per-event form, submissions and the admin analytics.

Members see the form only inside its window: from the event date (when
`show_after_event` is set) until `close_after_hours` after it. Admins see it
at any time. A member submits identified feedback once; anonymous
submissions, where the form allows them, are stored without a user.
"""

import math
import re
import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from alumni_api.core.clock import as_utc, utcnow
from alumni_api.core.exceptions import ForbiddenError, NotFoundError, RuleViolation
from alumni_api.core.logging import get_logger
from alumni_api.models.event import Event
from alumni_api.models.feedback import (
    LIKERT_OPTIONS,
    EventFeedbackField,
    EventFeedbackForm,
    EventFeedbackResponse,
    FeedbackFieldType,
)
from alumni_api.models.registration import RegistrationStatus
from alumni_api.models.user import User, UserRole
from alumni_api.schemas.feedback import FeedbackFormIn, FeedbackSubmit
from alumni_api.services.event_service import count_registrations, get_event

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


async def find_form(db: AsyncSession, event_id: int) -> Optional[EventFeedbackForm]:
    result = await db.execute(
        select(EventFeedbackForm)
        .where(EventFeedbackForm.event_id == event_id)
        .options(selectinload(EventFeedbackForm.fields), selectinload(EventFeedbackForm.event))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _require_form(db: AsyncSession, event_id: int) -> EventFeedbackForm:
    await get_event(db, event_id)
    form = await find_form(db, event_id)
    if form is None:
        raise NotFoundError("No feedback form found for this event")
    return form


async def count_submissions(db: AsyncSession, form_id: int) -> int:
    result = await db.execute(
        select(func.count(distinct(EventFeedbackResponse.submission_id))).where(
            EventFeedbackResponse.form_id == form_id
        )
    )
    return result.scalar_one()


async def upsert_form(db: AsyncSession, event_id: int, form_data: FeedbackFormIn) -> tuple[EventFeedbackForm, bool]:
    """
    Create or update the event's feedback form. Returns the form and whether it
    was created. Fields are replaced only when the request carries them, and
    not at all once feedback has been submitted.
    """
    event = await get_event(db, event_id)
    form = await find_form(db, event_id)
    created = form is None
    if created:
        form = EventFeedbackForm(event_id=event.id, fields=[])
        db.add(form)

    if form_data.fields is not None and not created and await count_submissions(db, form.id):
        raise RuleViolation("Cannot modify form with existing responses", code="FEEDBACK_HAS_RESPONSES")

    for name in (
        "title",
        "description",
        "allow_anonymous",
        "show_after_event",
        "close_after_hours",
        "completion_message",
        "is_active",
    ):
        setattr(form, name, getattr(form_data, name))

    if form_data.fields is not None:
        existing = {field.field_name: field for field in form.fields}
        fields = []
        for index, field_in in enumerate(form_data.fields):
            field = existing.get(field_in.field_name) or EventFeedbackField(field_name=field_in.field_name)
            field.field_label = field_in.field_label
            field.field_type = field_in.field_type.value
            field.options = field_in.options
            field.is_required = field_in.is_required
            field.min_value = field_in.min_value
            field.max_value = field_in.max_value
            field.order_index = index
            fields.append(field)
        form.fields = fields
    await db.flush()

    logger.info(
        "feedback_form_saved", event_id=event.id, form_id=form.id, created=created, fields=len(form.fields)
    )
    return form, created


def check_window(form: EventFeedbackForm, event: Event, now: Optional[datetime] = None) -> None:
    """Raise ForbiddenError unless members may currently see and answer the form."""
    now = now or utcnow()
    event_date = as_utc(event.event_date)

    if form.show_after_event and now < event_date:
        raise ForbiddenError("Feedback form not available yet", code="FEEDBACK_NOT_OPEN")
    if now > event_date + timedelta(hours=form.close_after_hours):
        raise ForbiddenError("Feedback form is now closed", code="FEEDBACK_CLOSED")
    if not form.is_active:
        raise ForbiddenError("Feedback form is not active", code="FEEDBACK_INACTIVE")


async def get_form(db: AsyncSession, event_id: int, user: User) -> EventFeedbackForm:
    form = await _require_form(db, event_id)
    if user.role != UserRole.SUPER_ADMIN:
        check_window(form, form.event)
    return form


# -- answer validation ---------------------------------------------------


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, list):
        return not value
    return str(value).strip() == ""


def _field_error(field: EventFeedbackField, value) -> Optional[str]:
    """Type-specific check for a non-blank answer; returns the problem or None."""
    field_type = field.field_type

    if field_type == FeedbackFieldType.CHECKBOX.value:
        if not isinstance(value, list):
            return "Checkbox value must be a list"
        invalid = [item for item in value if field.options and item not in field.options]
        return f"Invalid option: {invalid[0]}" if invalid else None

    if isinstance(value, list):
        return "Only one value is accepted"

    if field_type in (FeedbackFieldType.SELECT.value, FeedbackFieldType.RADIO.value):
        if field.options and value not in field.options:
            return "Invalid option selected"
    elif field_type == FeedbackFieldType.RATING.value:
        try:
            rating = float(value)
        except (TypeError, ValueError):
            return "Rating must be a number"
        low = field.min_value if field.min_value is not None else 1
        high = field.max_value if field.max_value is not None else 5
        if not low <= rating <= high:
            return f"Rating must be between {low} and {high}"
    elif field_type == FeedbackFieldType.LIKERT.value:
        if value not in LIKERT_OPTIONS:
            return "Invalid scale value"
    elif field_type == FeedbackFieldType.EMAIL.value:
        if not EMAIL_PATTERN.match(str(value)):
            return "Invalid email format"
    return None


def validate_answers(fields: list[EventFeedbackField], answers: dict) -> None:
    """Reject unknown field ids, blank required answers and malformed values."""
    known = {field.id for field in fields}
    unknown = sorted(field_id for field_id in answers if field_id not in known)
    if unknown:
        raise RuleViolation(
            "Invalid feedback field(s) submitted",
            code="INVALID_FEEDBACK_FIELD",
            errors=[{"fieldId": field_id, "message": "Unknown feedback field"} for field_id in unknown],
        )

    errors = []
    for field in fields:
        value = answers.get(field.id)
        if _is_blank(value):
            if field.is_required:
                errors.append({"fieldId": field.id, "message": f"{field.field_label} is required"})
            continue
        problem = _field_error(field, value)
        if problem:
            errors.append({"fieldId": field.id, "message": f"{field.field_label}: {problem}"})

    if errors:
        raise RuleViolation(
            ", ".join(error["message"] for error in errors), code="INVALID_FEEDBACK", errors=errors
        )


def _stored(value) -> str:
    if isinstance(value, list):
        return ", ".join(value)
    return str(value).strip()


# -- submissions ---------------------------------------------------------


async def _has_submitted(db: AsyncSession, form_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(EventFeedbackResponse.id)
        .where(
            EventFeedbackResponse.form_id == form_id,
            EventFeedbackResponse.user_id == user_id,
        )
        .limit(1)
    )
    return result.first() is not None


async def submit_feedback(
    db: AsyncSession,
    event_id: int,
    user: User,
    submission: FeedbackSubmit,
    ip_address: Optional[str] = None,
) -> dict:
    form = await find_form(db, event_id)
    if form is None or not form.is_active:
        raise NotFoundError("Feedback form not found or not active")
    check_window(form, form.event)

    anonymous = submission.is_anonymous
    if anonymous and not form.allow_anonymous:
        raise RuleViolation("Anonymous feedback not allowed for this form", code="ANONYMOUS_NOT_ALLOWED")
    if not anonymous and await _has_submitted(db, form.id, user.id):
        raise RuleViolation(
            "You have already submitted feedback for this event", code="FEEDBACK_ALREADY_SUBMITTED"
        )

    validate_answers(form.fields, submission.responses)

    submission_id = uuid.uuid4().hex
    rows = [
        EventFeedbackResponse(
            form_id=form.id,
            field_id=field.id,
            user_id=None if anonymous else user.id,
            submission_id=submission_id,
            response=_stored(submission.responses[field.id]),
            is_anonymous=anonymous,
            ip_address=ip_address,
        )
        for field in form.fields
        if not _is_blank(submission.responses.get(field.id))
    ]
    db.add_all(rows)
    await db.flush()

    logger.info(
        "feedback_submitted",
        event_id=event_id,
        form_id=form.id,
        anonymous=anonymous,
        answers=len(rows),
    )
    return {
        "completion_message": form.completion_message,
        "responses_submitted": len(rows),
        "is_anonymous": anonymous,
    }


def _answer(row: EventFeedbackResponse) -> dict:
    return {
        "id": row.id,
        "field_id": row.field_id,
        "field_label": row.field.field_label,
        "field_type": row.field.field_type,
        "response": row.response,
        "is_anonymous": row.is_anonymous,
        "user_id": row.user_id,
        "user_name": row.user.full_name if row.user else None,
        "submitted_at": row.created_at,
    }


def _responses_query(form_id: int):
    return (
        select(EventFeedbackResponse)
        .where(EventFeedbackResponse.form_id == form_id)
        .options(selectinload(EventFeedbackResponse.field), selectinload(EventFeedbackResponse.user))
    )


async def get_my_feedback(db: AsyncSession, event_id: int, user: User) -> list[dict]:
    """The member's identified answers; anonymous submissions cannot be traced back."""
    form = await _require_form(db, event_id)
    result = await db.execute(
        _responses_query(form.id)
        .join(EventFeedbackField, EventFeedbackResponse.field_id == EventFeedbackField.id)
        .where(EventFeedbackResponse.user_id == user.id, EventFeedbackResponse.is_anonymous.is_(False))
        .order_by(EventFeedbackField.order_index)
    )
    return [_answer(row) for row in result.scalars().all()]


async def list_responses(
    db: AsyncSession,
    event_id: int,
    page: int = 1,
    limit: int = 50,
    include_anonymous: bool = True,
    field_id: Optional[int] = None,
) -> tuple[list[dict], int]:
    form = await _require_form(db, event_id)
    conditions = [EventFeedbackResponse.form_id == form.id]
    if not include_anonymous:
        conditions.append(EventFeedbackResponse.is_anonymous.is_(False))
    if field_id is not None:
        conditions.append(EventFeedbackResponse.field_id == field_id)

    total = (
        await db.execute(select(func.count(EventFeedbackResponse.id)).where(*conditions))
    ).scalar_one()
    result = await db.execute(
        _responses_query(form.id)
        .where(*conditions)
        .order_by(EventFeedbackResponse.created_at.desc(), EventFeedbackResponse.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return [_answer(row) for row in result.scalars().all()], total


# -- analytics -----------------------------------------------------------


def rating_summary(values: list[float]) -> tuple[Optional[float], dict]:
    """Average rating (2 dp) and the share of each rounded rating."""
    if not values:
        return None, {}
    counts: dict[str, int] = {}
    for value in values:
        bucket = str(math.floor(value + 0.5))
        counts[bucket] = counts.get(bucket, 0) + 1
    distribution = {
        bucket: {"count": count, "percentage": math.floor(count / len(values) * 100 + 0.5)}
        for bucket, count in sorted(counts.items(), key=lambda item: float(item[0]))
    }
    return round(sum(values) / len(values), 2), distribution


async def get_analytics(db: AsyncSession, event_id: int) -> dict:
    form = await _require_form(db, event_id)
    base = EventFeedbackResponse.form_id == form.id

    total = await count_submissions(db, form.id)
    anonymous = (
        await db.execute(
            select(func.count(distinct(EventFeedbackResponse.submission_id))).where(
                base, EventFeedbackResponse.is_anonymous.is_(True)
            )
        )
    ).scalar_one()
    identified = (
        await db.execute(
            select(func.count(distinct(EventFeedbackResponse.user_id))).where(
                base, EventFeedbackResponse.is_anonymous.is_(False)
            )
        )
    ).scalar_one()
    confirmed = await count_registrations(db, event_id, RegistrationStatus.CONFIRMED.value)

    rating_rows = await db.execute(
        select(EventFeedbackResponse.response)
        .join(EventFeedbackField, EventFeedbackResponse.field_id == EventFeedbackField.id)
        .where(base, EventFeedbackField.field_type == FeedbackFieldType.RATING.value)
    )
    average, distribution = rating_summary([float(value) for value in rating_rows.scalars().all()])

    return {
        "total_responses": total,
        "anonymous_responses": anonymous,
        "identified_responses": identified,
        "completion_rate": round(identified / confirmed * 100, 2) if confirmed else 0.0,
        "average_rating": average,
        "rating_distribution": distribution,
    }
