"""
Merchandise catalogue per event (admin-managed).
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.core.exceptions import NotFoundError, RuleViolation
from alumni_api.core.logging import get_logger
from alumni_api.models.merchandise import EventMerchandise, MerchandiseOrder, OrderStatus
from alumni_api.schemas.merchandise import MerchandiseCreate, MerchandiseUpdate
from alumni_api.services.event_service import get_event

logger = get_logger(__name__)


async def list_merchandise(db: AsyncSession, event_id: int, include_inactive: bool = False) -> list[EventMerchandise]:
    await get_event(db, event_id)
    query = select(EventMerchandise).where(EventMerchandise.event_id == event_id)
    if not include_inactive:
        query = query.where(EventMerchandise.is_active.is_(True))
    result = await db.execute(query.order_by(EventMerchandise.order_index, EventMerchandise.id))
    return list(result.scalars().all())


async def get_item(db: AsyncSession, event_id: int, item_id: int) -> EventMerchandise:
    result = await db.execute(
        select(EventMerchandise).where(EventMerchandise.id == item_id, EventMerchandise.event_id == event_id)
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFoundError("Merchandise item not found")
    return item


async def create_item(db: AsyncSession, event_id: int, item_data: MerchandiseCreate) -> EventMerchandise:
    event = await get_event(db, event_id)
    next_index = (
        await db.execute(
            select(func.coalesce(func.max(EventMerchandise.order_index), -1)).where(
                EventMerchandise.event_id == event_id
            )
        )
    ).scalar_one() + 1

    item = EventMerchandise(event_id=event.id, order_index=next_index, **item_data.model_dump())
    db.add(item)
    event.has_merchandise = True
    await db.flush()

    logger.info("merchandise_created", event_id=event.id, item_id=item.id, price=item.price)
    return item


async def update_item(
    db: AsyncSession, event_id: int, item_id: int, item_data: MerchandiseUpdate
) -> EventMerchandise:
    item = await get_item(db, event_id, item_id)
    changes = item_data.model_dump(exclude_unset=True)
    for name, value in changes.items():
        if name == "available_sizes" and value is None:
            value = []
        setattr(item, name, value)
    await db.flush()

    logger.info("merchandise_updated", item_id=item.id, fields=sorted(changes))
    return item


async def delete_item(db: AsyncSession, event_id: int, item_id: int) -> EventMerchandise:
    """Items with placed orders cannot be deleted, only deactivated."""
    item = await get_item(db, event_id, item_id)

    ordered = (
        await db.execute(
            select(func.count(MerchandiseOrder.id)).where(
                MerchandiseOrder.merchandise_id == item.id,
                MerchandiseOrder.status == OrderStatus.ORDERED.value,
            )
        )
    ).scalar_one()
    if ordered:
        raise RuleViolation(
            "Cannot delete an item that has been ordered. Deactivate it instead.",
            code="MERCHANDISE_HAS_ORDERS",
        )

    # Drop open cart lines pointing at the item
    carts = await db.execute(select(MerchandiseOrder).where(MerchandiseOrder.merchandise_id == item.id))
    for line in carts.scalars().all():
        await db.delete(line)
    await db.delete(item)
    await db.flush()

    logger.info("merchandise_deleted", item_id=item_id)
    return item
