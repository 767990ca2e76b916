"""
Content sections on an event page.

An event holds at most one section of each type, except CUSTOM which may
repeat. Sections are shown by `order_index`; hidden ones are admin-only.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.core.exceptions import NotFoundError, RuleViolation
from alumni_api.core.logging import get_logger
from alumni_api.models.section import EventSection, SectionType
from alumni_api.schemas.section import SectionCreate, SectionReorder, SectionUpdate
from alumni_api.services.event_service import get_event

logger = get_logger(__name__)


async def list_sections(db: AsyncSession, event_id: int, include_hidden: bool = False) -> list[EventSection]:
    await get_event(db, event_id, public_only=not include_hidden)
    query = select(EventSection).where(EventSection.event_id == event_id)
    if not include_hidden:
        query = query.where(EventSection.is_visible.is_(True))
    result = await db.execute(query.order_by(EventSection.order_index, EventSection.id))
    return list(result.scalars().all())


async def get_section(
    db: AsyncSession, event_id: int, section_id: int, include_hidden: bool = True
) -> EventSection:
    result = await db.execute(
        select(EventSection).where(EventSection.id == section_id, EventSection.event_id == event_id)
    )
    section = result.scalar_one_or_none()
    if section is None or (not include_hidden and not section.is_visible):
        raise NotFoundError("Section not found")
    return section


async def _ensure_type_free(
    db: AsyncSession, event_id: int, section_type: SectionType, exclude_id: Optional[int] = None
) -> None:
    if section_type == SectionType.CUSTOM:
        return
    query = select(EventSection.id).where(
        EventSection.event_id == event_id, EventSection.section_type == section_type.value
    )
    if exclude_id is not None:
        query = query.where(EventSection.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise RuleViolation(f"Event already has a {section_type.value} section", code="DUPLICATE_SECTION")


async def add_section(db: AsyncSession, event_id: int, section_data: SectionCreate) -> EventSection:
    event = await get_event(db, event_id)
    await _ensure_type_free(db, event.id, section_data.section_type)

    order_index = section_data.order_index
    if order_index is None:
        order_index = (
            await db.execute(
                select(func.coalesce(func.max(EventSection.order_index), -1)).where(
                    EventSection.event_id == event.id
                )
            )
        ).scalar_one() + 1

    section = EventSection(
        event_id=event.id,
        section_type=section_data.section_type.value,
        title=section_data.title,
        content=section_data.content,
        order_index=order_index,
        is_visible=section_data.is_visible,
    )
    db.add(section)
    await db.flush()

    logger.info("event_section_added", event_id=event.id, section_id=section.id, type=section.section_type)
    return section


async def update_section(
    db: AsyncSession, event_id: int, section_id: int, section_data: SectionUpdate
) -> EventSection:
    section = await get_section(db, event_id, section_id)
    changes = section_data.model_dump(exclude_unset=True)

    new_type = changes.get("section_type")
    if new_type is not None and new_type.value != section.section_type:
        await _ensure_type_free(db, event_id, new_type, exclude_id=section.id)

    for name, value in changes.items():
        if value is None:
            continue
        setattr(section, name, value.value if name == "section_type" else value)
    await db.flush()

    logger.info("event_section_updated", section_id=section.id, fields=sorted(changes))
    return section


async def delete_section(db: AsyncSession, event_id: int, section_id: int) -> EventSection:
    section = await get_section(db, event_id, section_id)
    await db.delete(section)
    await db.flush()

    logger.info("event_section_deleted", event_id=event_id, section_id=section_id)
    return section


async def reorder_sections(db: AsyncSession, event_id: int, reorder: SectionReorder) -> list[EventSection]:
    """Assign `order_index` by position in the request. Every id must belong to the event."""
    await get_event(db, event_id)
    result = await db.execute(
        select(EventSection).where(
            EventSection.event_id == event_id, EventSection.id.in_(reorder.section_ids)
        )
    )
    sections = {section.id: section for section in result.scalars().all()}
    if len(sections) != len(reorder.section_ids):
        raise RuleViolation("Some sections do not belong to this event", code="SECTION_MISMATCH")

    for index, section_id in enumerate(reorder.section_ids):
        sections[section_id].order_index = index
    await db.flush()

    logger.info("event_sections_reordered", event_id=event_id, count=len(sections))
    return await list_sections(db, event_id, include_hidden=True)
