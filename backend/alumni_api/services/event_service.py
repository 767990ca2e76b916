"""
Event service handling CRUD, lifecycle status and the registration-status read.
"""

import re
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.core.clock import as_utc, utcnow
from alumni_api.core.exceptions import NotFoundError, RuleViolation
from alumni_api.core.logging import get_logger
from alumni_api.models.category import EventCategory
from alumni_api.models.event import Event, EventStatus
from alumni_api.models.registration import EventRegistration, RegistrationStatus
from alumni_api.schemas.event import EventCreate, EventUpdate
from alumni_api.services.eligibility_service import check_registration_status

logger = get_logger(__name__)

# Statuses visible on the public listing and detail endpoints
PUBLIC_STATUSES = tuple(
    s.value for s in EventStatus if s not in (EventStatus.DRAFT, EventStatus.ARCHIVED)
)

DATE_FIELDS = ("event_date", "registration_start_date", "registration_end_date")


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug or "event"


async def generate_unique_slug(db: AsyncSession, title: str, exclude_id: Optional[int] = None) -> str:
    """Slug from the title, with a numeric suffix on collision (`reunion`, `reunion-1`, ...)."""
    base = slugify(title)
    slug = base
    counter = 1
    while True:
        query = select(Event.id).where(Event.slug == slug)
        if exclude_id is not None:
            query = query.where(Event.id != exclude_id)
        if (await db.execute(query)).first() is None:
            return slug
        slug = f"{base}-{counter}"
        counter += 1


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def validate_schedule(event: Event) -> None:
    """Cross-field checks on the merged event state (partial updates included)."""
    if event.start_time and event.end_time and _minutes(event.start_time) >= _minutes(event.end_time):
        raise RuleViolation("End time must be after start time", code="INVALID_SCHEDULE")

    start = as_utc(event.registration_start_date)
    end = as_utc(event.registration_end_date)
    if start and end and start >= end:
        raise RuleViolation("Registration end date must be after start date", code="INVALID_SCHEDULE")
    if end and end > as_utc(event.event_date):
        raise RuleViolation("Registration end date cannot be after event date", code="INVALID_SCHEDULE")

    if event.has_external_link and not event.external_registration_link:
        raise RuleViolation(
            "External registration link is required when external link is enabled",
            code="INVALID_SCHEDULE",
        )


async def resolve_category(db: AsyncSession, category_id: Optional[int]) -> None:
    """Events may only be filed under an existing, active category."""
    if category_id is None:
        return
    result = await db.execute(select(EventCategory.is_active).where(EventCategory.id == category_id))
    if result.scalar_one_or_none() is not True:
        raise RuleViolation("Invalid or inactive category", code="INVALID_CATEGORY")


async def create_event(db: AsyncSession, event_data: EventCreate, creator_id: int) -> Event:
    """Create an event; the event date must lie in the future."""
    if as_utc(event_data.event_date) <= utcnow():
        raise RuleViolation("Event date must be in the future", code="INVALID_EVENT_DATE")
    await resolve_category(db, event_data.category_id)

    values = event_data.model_dump()
    values["status"] = event_data.status.value
    for name in DATE_FIELDS:
        values[name] = as_utc(values[name])

    event = Event(**values, slug=await generate_unique_slug(db, event_data.title), created_by_id=creator_id)
    validate_schedule(event)
    db.add(event)
    await db.flush()

    logger.info("event_created", event_id=event.id, slug=event.slug, status=event.status)
    return event


async def get_event(db: AsyncSession, event_id: int, public_only: bool = False) -> Event:
    """Get a single event by ID. Drafts and archived events are hidden when `public_only`."""
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event or (public_only and event.status not in PUBLIC_STATUSES):
        raise NotFoundError("Event not found")
    return event


async def list_events(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    upcoming_only: bool = False,
    status: Optional[str] = None,
    search: Optional[str] = None,
    category: Optional[str] = None,
    public_only: bool = True,
) -> tuple[list[Event], int]:
    """
    List events with pagination, soonest first. `category` matches either a
    category id or a category name (case-insensitive).
    Uses the ix_events_status_date composite index when filtering by status.
    """
    query = select(Event)

    if public_only:
        query = query.where(Event.status.in_(PUBLIC_STATUSES))
    if status:
        query = query.where(Event.status == status)
    if upcoming_only:
        query = query.where(Event.event_date >= utcnow())
    if category:
        if category.isdigit():
            query = query.where(Event.category_id == int(category))
        else:
            query = query.join(EventCategory, Event.category_id == EventCategory.id).where(
                EventCategory.name == category.strip().upper()
            )
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(func.lower(Event.title).like(pattern) | func.lower(Event.venue).like(pattern))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    events_query = (
        query
        .order_by(Event.event_date.asc(), Event.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(events_query)
    return list(result.scalars().all()), total


async def update_event(db: AsyncSession, event_id: int, event_data: EventUpdate) -> tuple[Event, str]:
    """Apply a partial update. Returns the event and its slug before the update."""
    event = await get_event(db, event_id)
    previous_slug = event.slug

    changes = event_data.model_dump(exclude_unset=True)
    if "category_id" in changes:
        await resolve_category(db, changes["category_id"])
    for name in DATE_FIELDS:
        if name in changes:
            changes[name] = as_utc(changes[name])
    if "title" in changes and changes["title"] and changes["title"] != event.title:
        event.slug = await generate_unique_slug(db, changes["title"], exclude_id=event.id)

    for name, value in changes.items():
        setattr(event, name, value)
    validate_schedule(event)
    await db.flush()

    logger.info("event_updated", event_id=event.id, fields=sorted(changes))
    return event, previous_slug


async def update_event_status(db: AsyncSession, event_id: int, new_status: EventStatus) -> Event:
    event = await get_event(db, event_id)
    previous = event.status
    event.status = new_status.value
    await db.flush()

    logger.info("event_status_changed", event_id=event.id, previous=previous, status=event.status)
    return event


async def count_registrations(db: AsyncSession, event_id: int, status: Optional[str] = None) -> int:
    query = select(func.count(EventRegistration.id)).where(EventRegistration.event_id == event_id)
    if status:
        query = query.where(EventRegistration.status == status)
    return (await db.execute(query)).scalar_one()


async def delete_event(db: AsyncSession, event_id: int) -> Event:
    """Hard delete, allowed only while the event has no registrations of any status."""
    event = await get_event(db, event_id)

    if await count_registrations(db, event_id) > 0:
        raise RuleViolation(
            "Cannot delete event with existing registrations. Archive it instead.",
            code="EVENT_HAS_REGISTRATIONS",
        )

    await db.delete(event)
    await db.flush()

    logger.info("event_deleted", event_id=event_id, slug=event.slug)
    return event


async def get_registration_status(db: AsyncSession, event_id: int, now: Optional[datetime] = None) -> dict:
    event = await get_event(db, event_id, public_only=True)
    confirmed = await count_registrations(db, event_id, RegistrationStatus.CONFIRMED.value)
    result = check_registration_status(event, confirmed, now=now)
    return {
        "event_id": event.id,
        "status": result.state.value,
        "can_register": result.can_register,
        "message": result.message,
        "confirmed_registrations": confirmed,
        "max_capacity": event.max_capacity,
        "external_registration_link": event.external_registration_link if event.has_external_link else None,
    }
