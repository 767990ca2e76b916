"""
Read side of registrations: the caller's own registration, the admin listing,
per-event statistics and the admin dashboard aggregates.
"""

from datetime import timedelta
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from alumni_api.core.clock import utcnow
from alumni_api.core.exceptions import NotFoundError
from alumni_api.models.event import Event, EventStatus
from alumni_api.models.guest import EventGuest, GuestStatus
from alumni_api.models.registration import EventRegistration, RegistrationStatus
from alumni_api.models.user import User
from alumni_api.services.event_service import get_event

UPCOMING_STATUSES = (
    EventStatus.PUBLISHED.value,
    EventStatus.REGISTRATION_OPEN.value,
    EventStatus.REGISTRATION_CLOSED.value,
)


async def get_user_registration(db: AsyncSession, event_id: int, user_id: int) -> EventRegistration:
    """The caller's registration for the event with its event loaded; 404 if none."""
    result = await db.execute(
        select(EventRegistration)
        .where(EventRegistration.event_id == event_id, EventRegistration.user_id == user_id)
        .options(selectinload(EventRegistration.event))
        .execution_options(populate_existing=True)
    )
    registration = result.scalar_one_or_none()
    if registration is None:
        raise NotFoundError("Registration not found")
    return registration


def _admin_query(event_id: int, status: Optional[str], search: Optional[str]):
    query = (
        select(EventRegistration, User.full_name, User.email)
        .join(User, User.id == EventRegistration.user_id)
        .where(EventRegistration.event_id == event_id)
    )
    if status:
        query = query.where(EventRegistration.status == status)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(func.lower(User.full_name).like(pattern), func.lower(User.email).like(pattern)))
    return query


async def list_registrations(
    db: AsyncSession,
    event_id: int,
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> tuple[list[dict], int]:
    await get_event(db, event_id)
    query = _admin_query(event_id, status, search)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()
    result = await db.execute(
        query.options(selectinload(EventRegistration.form_responses))
        .order_by(EventRegistration.created_at.desc(), EventRegistration.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = [_admin_row(registration, full_name, email) for registration, full_name, email in result.all()]
    return rows, total


async def iter_export_rows(db: AsyncSession, event_id: int, max_rows: int) -> list[dict]:
    """Every registration of the event (oldest first), capped at `max_rows`."""
    result = await db.execute(
        _admin_query(event_id, None, None)
        .options(selectinload(EventRegistration.form_responses))
        .order_by(EventRegistration.created_at.asc(), EventRegistration.id.asc())
        .limit(max_rows)
    )
    return [_admin_row(registration, full_name, email) for registration, full_name, email in result.all()]


def _admin_row(registration: EventRegistration, full_name: str, email: str) -> dict:
    row = {column.name: getattr(registration, column.name) for column in EventRegistration.__table__.columns}
    row["form_responses"] = list(registration.form_responses)
    row["user_full_name"] = full_name
    row["user_email"] = email
    return row


async def _grouped_counts(db: AsyncSession, column, event_id: int, confirmed_only: bool = False) -> dict:
    query = select(column, func.count(EventRegistration.id)).where(EventRegistration.event_id == event_id)
    if confirmed_only:
        query = query.where(EventRegistration.status == RegistrationStatus.CONFIRMED.value)
    result = await db.execute(query.group_by(column))
    return {key: count for key, count in result.all() if key is not None}


async def registration_stats(db: AsyncSession, event_id: int) -> dict:
    """Counts by status, payment status and meal, guest totals and the revenue breakdown."""
    event = await get_event(db, event_id)

    by_status = await _grouped_counts(db, EventRegistration.status, event_id)
    by_payment_status = await _grouped_counts(db, EventRegistration.payment_status, event_id, confirmed_only=True)
    meals = await _grouped_counts(db, EventRegistration.meal_preference, event_id, confirmed_only=True)

    revenue_row = (
        await db.execute(
            select(
                func.coalesce(func.sum(EventRegistration.registration_fee_paid), 0),
                func.coalesce(func.sum(EventRegistration.guest_fees_paid), 0),
                func.coalesce(func.sum(EventRegistration.merchandise_total), 0),
                func.coalesce(func.sum(EventRegistration.donation_amount), 0),
                func.coalesce(func.sum(EventRegistration.total_amount), 0),
            ).where(
                EventRegistration.event_id == event_id,
                EventRegistration.status == RegistrationStatus.CONFIRMED.value,
            )
        )
    ).one()

    guest_rows = await db.execute(
        select(EventGuest.status, func.count(EventGuest.id))
        .join(EventRegistration, EventRegistration.id == EventGuest.registration_id)
        .where(EventRegistration.event_id == event_id)
        .group_by(EventGuest.status)
    )
    guest_counts = dict(guest_rows.all())

    confirmed = by_status.get(RegistrationStatus.CONFIRMED.value, 0)
    utilization = None
    if event.max_capacity:
        utilization = round(confirmed / event.max_capacity * 100)

    return {
        "event_id": event.id,
        "total": sum(by_status.values()),
        "by_status": by_status,
        "by_payment_status": by_payment_status,
        "meals": meals,
        "guests": {
            "active": guest_counts.get(GuestStatus.ACTIVE.value, 0),
            "cancelled": guest_counts.get(GuestStatus.CANCELLED.value, 0),
        },
        "revenue": {
            "registration": float(revenue_row[0]),
            "guests": float(revenue_row[1]),
            "merchandise": float(revenue_row[2]),
            "donations": float(revenue_row[3]),
            "total": float(revenue_row[4]),
        },
        "capacity_utilization": utilization,
    }


async def dashboard_stats(db: AsyncSession) -> dict:
    now = utcnow()

    total_events = (await db.execute(select(func.count(Event.id)))).scalar_one()
    upcoming_events = (
        await db.execute(
            select(func.count(Event.id)).where(Event.event_date >= now, Event.status.in_(UPCOMING_STATUSES))
        )
    ).scalar_one()
    draft_events = (
        await db.execute(select(func.count(Event.id)).where(Event.status == EventStatus.DRAFT.value))
    ).scalar_one()
    recent_registrations = (
        await db.execute(
            select(func.count(EventRegistration.id)).where(
                EventRegistration.created_at >= now - timedelta(days=30),
                EventRegistration.status == RegistrationStatus.CONFIRMED.value,
            )
        )
    ).scalar_one()
    total_revenue = (
        await db.execute(
            select(func.coalesce(func.sum(EventRegistration.total_amount), 0)).where(
                EventRegistration.status == RegistrationStatus.CONFIRMED.value
            )
        )
    ).scalar_one()

    return {
        "total_events": total_events,
        "upcoming_events": upcoming_events,
        "draft_events": draft_events,
        "recent_registrations": recent_registrations,
        "total_revenue": float(total_revenue),
        "generated_at": now,
    }
