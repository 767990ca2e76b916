"""
Event categories: admin CRUD plus the public listing with per-category event counts.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.core.exceptions import ConflictError, NotFoundError, RuleViolation
from alumni_api.core.logging import get_logger
from alumni_api.models.category import EventCategory
from alumni_api.models.event import Event
from alumni_api.schemas.category import CategoryCreate, CategoryUpdate
from alumni_api.services.event_service import PUBLIC_STATUSES

logger = get_logger(__name__)


async def _count_events(db: AsyncSession, category_id: int) -> int:
    """All events filed under the category, drafts and archived included."""
    query = select(func.count(Event.id)).where(Event.category_id == category_id)
    return (await db.execute(query)).scalar_one()


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(EventCategory.id).where(EventCategory.name == name)
    if exclude_id is not None:
        query = query.where(EventCategory.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError("Category name already exists", code="CATEGORY_EXISTS")


async def list_categories(db: AsyncSession) -> list[dict]:
    """Active categories by name, each with its count of publicly visible events."""
    event_count = (
        select(Event.category_id, func.count(Event.id).label("event_count"))
        .where(Event.status.in_(PUBLIC_STATUSES))
        .group_by(Event.category_id)
        .subquery()
    )
    result = await db.execute(
        select(EventCategory, func.coalesce(event_count.c.event_count, 0))
        .outerjoin(event_count, event_count.c.category_id == EventCategory.id)
        .where(EventCategory.is_active.is_(True))
        .order_by(EventCategory.name)
    )
    return [_with_count(category, count) for category, count in result.all()]


def _with_count(category: EventCategory, count: int) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "is_active": category.is_active,
        "event_count": count,
        "created_at": category.created_at,
    }


async def get_category(db: AsyncSession, category_id: int, active_only: bool = False) -> EventCategory:
    result = await db.execute(select(EventCategory).where(EventCategory.id == category_id))
    category = result.scalar_one_or_none()
    if category is None or (active_only and not category.is_active):
        raise NotFoundError("Event category not found")
    return category


async def get_category_detail(db: AsyncSession, category_id: int) -> dict:
    """An active category together with its public events, soonest first."""
    category = await get_category(db, category_id, active_only=True)
    result = await db.execute(
        select(Event)
        .where(Event.category_id == category.id, Event.status.in_(PUBLIC_STATUSES))
        .order_by(Event.event_date.asc(), Event.id.asc())
    )
    events = list(result.scalars().all())
    detail = _with_count(category, len(events))
    detail["events"] = events
    return detail


async def create_category(db: AsyncSession, category_data: CategoryCreate) -> EventCategory:
    await _ensure_name_free(db, category_data.name)
    category = EventCategory(name=category_data.name, description=category_data.description, is_active=True)
    db.add(category)
    await db.flush()

    logger.info("event_category_created", category_id=category.id, name=category.name)
    return category


async def update_category(db: AsyncSession, category_id: int, category_data: CategoryUpdate) -> EventCategory:
    category = await get_category(db, category_id)
    changes = category_data.model_dump(exclude_unset=True)

    if changes.get("name") and changes["name"] != category.name:
        await _ensure_name_free(db, changes["name"], exclude_id=category.id)
    if changes.get("is_active") is False and category.is_active:
        if await _count_events(db, category.id):
            raise RuleViolation(
                "Cannot deactivate a category that still has events", code="CATEGORY_HAS_EVENTS"
            )

    for name, value in changes.items():
        if value is None and name in ("name", "is_active"):
            continue
        setattr(category, name, value)
    await db.flush()

    logger.info("event_category_updated", category_id=category.id, fields=sorted(changes))
    return category


async def delete_category(db: AsyncSession, category_id: int) -> EventCategory:
    category = await get_category(db, category_id)
    events = await _count_events(db, category.id)
    if events:
        raise RuleViolation(
            f"Cannot delete category with {events} event(s). Move or delete the events first.",
            code="CATEGORY_HAS_EVENTS",
        )

    await db.delete(category)
    await db.flush()

    logger.info("event_category_deleted", category_id=category_id, name=category.name)
    return category
