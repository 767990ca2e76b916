"""
Merchandise cart and checkout.

CHECKOUT STRATEGY: guarded stock decrement
==========================================

Problem:
  Two registrants check out the last T-shirt at the same time. Both read
  stock_quantity=1 and both would succeed. Result: oversold stock.

Solution:
  Each item is decremented with a conditional UPDATE

      UPDATE event_merchandise SET stock_quantity = stock_quantity - :qty
      WHERE id = :id AND stock_quantity >= :qty

  If any guarded update matches zero rows, the whole checkout transaction is
  rolled back: no item is decremented, no cart line changes state and the
  registration totals are untouched. The CHECK constraint
  (stock_quantity >= 0) stays as the final safety net.

  Cart lines move from CART to ORDERED in the same transaction, so a line's
  stock is decremented exactly once.

Cart mutations and checkout require merchandise to be enabled for the event, a
confirmed registration and an open modification window.
"""

from collections import defaultdict
from typing import Optional

from fastapi import Request
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from alumni_api.core.clock import utcnow
from alumni_api.core.exceptions import ConflictError, NotFoundError, RuleViolation
from alumni_api.core.logging import get_logger
from alumni_api.core.metrics import record_checkout_attempt
from alumni_api.models.merchandise import EventMerchandise, MerchandiseOrder, OrderStatus
from alumni_api.models.registration import EventRegistration, PaymentStatus
from alumni_api.schemas.merchandise import CartItemCreate, CartItemUpdate, CheckoutRequest
from alumni_api.services.audit_service import log_activity
from alumni_api.services.cache_invalidation import CacheInvalidator, Mutation
from alumni_api.services.fee_service import FeeBreakdown, MerchandiseLine, calculate_fees
from alumni_api.services.modification_service import can_modify_registration
from alumni_api.services.notification_service import NotificationDispatcher
from alumni_api.services.registration_query_service import get_user_registration

logger = get_logger(__name__)

LOW_STOCK_THRESHOLD = 5


def stock_status(item: EventMerchandise, quantity: int = 0) -> str:
    if item.stock_quantity is None:
        return "UNLIMITED"
    if item.stock_quantity == 0:
        return "OUT_OF_STOCK"
    if item.stock_quantity < quantity:
        return "INSUFFICIENT"
    if item.stock_quantity <= LOW_STOCK_THRESHOLD:
        return "LOW_STOCK"
    return "IN_STOCK"


def line_dict(line: MerchandiseOrder) -> dict:
    return {
        "id": line.id,
        "merchandise_id": line.merchandise_id,
        "name": line.merchandise.name,
        "quantity": line.quantity,
        "selected_size": line.selected_size,
        "unit_price": line.unit_price,
        "total_price": line.total_price,
        "status": line.status,
        "stock_status": stock_status(line.merchandise, line.quantity if line.status == OrderStatus.CART.value else 0),
    }


def _summary(lines: list[MerchandiseOrder]) -> dict:
    return {
        "item_count": len(lines),
        "total_quantity": sum(line.quantity for line in lines),
        "total_amount": sum(line.total_price for line in lines),
    }


async def checkout_eligible_registration(db: AsyncSession, event_id: int, user_id: int) -> EventRegistration:
    registration = await get_user_registration(db, event_id, user_id)
    if not registration.event.has_merchandise:
        raise RuleViolation("Merchandise is not available for this event", code="MERCHANDISE_NOT_AVAILABLE")
    check = can_modify_registration(registration.event, registration)
    if not check.allowed:
        raise RuleViolation(check.message, code=check.reason.value)
    return registration


async def _lines(db: AsyncSession, registration_id: int, status: OrderStatus) -> list[MerchandiseOrder]:
    result = await db.execute(
        select(MerchandiseOrder)
        .where(MerchandiseOrder.registration_id == registration_id, MerchandiseOrder.status == status.value)
        .options(selectinload(MerchandiseOrder.merchandise))
        .order_by(MerchandiseOrder.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _cart_line(db: AsyncSession, registration_id: int, line_id: int) -> MerchandiseOrder:
    result = await db.execute(
        select(MerchandiseOrder)
        .where(
            MerchandiseOrder.id == line_id,
            MerchandiseOrder.registration_id == registration_id,
            MerchandiseOrder.status == OrderStatus.CART.value,
        )
        .options(selectinload(MerchandiseOrder.merchandise))
    )
    line = result.scalar_one_or_none()
    if line is None:
        raise NotFoundError("Cart item not found")
    return line


def _resolve_size(item: EventMerchandise, selected_size: Optional[str]) -> Optional[str]:
    sizes = item.available_sizes or []
    if not sizes:
        return None
    if not selected_size:
        raise RuleViolation("Size selection is required for this item", code="SIZE_REQUIRED")
    if selected_size not in sizes:
        raise RuleViolation(f"Invalid size. Available sizes: {', '.join(sizes)}", code="INVALID_SIZE")
    return selected_size


def _check_stock(item: EventMerchandise, quantity: int) -> None:
    if item.stock_quantity is not None and quantity > item.stock_quantity:
        raise RuleViolation(
            f"Insufficient stock for {item.name}. Only {item.stock_quantity} available",
            code="INSUFFICIENT_STOCK",
        )


async def get_cart(db: AsyncSession, event_id: int, user_id: int) -> dict:
    registration = await get_user_registration(db, event_id, user_id)
    lines = await _lines(db, registration.id, OrderStatus.CART)
    return {
        "registration_id": registration.id,
        "items": [line_dict(line) for line in lines],
        "summary": _summary(lines),
    }


async def get_orders(db: AsyncSession, event_id: int, user_id: int) -> dict:
    registration = await get_user_registration(db, event_id, user_id)
    lines = await _lines(db, registration.id, OrderStatus.ORDERED)
    return {
        "registration_id": registration.id,
        "items": [line_dict(line) for line in lines],
        "summary": _summary(lines),
    }


async def add_to_cart(
    db: AsyncSession,
    event_id: int,
    user_id: int,
    item_data: CartItemCreate,
    invalidator: CacheInvalidator,
) -> dict:
    registration = await checkout_eligible_registration(db, event_id, user_id)

    result = await db.execute(
        select(EventMerchandise).where(
            EventMerchandise.id == item_data.merchandise_id,
            EventMerchandise.event_id == event_id,
            EventMerchandise.is_active.is_(True),
        )
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFoundError("Merchandise item not found")
    size = _resolve_size(item, item_data.selected_size)

    existing = await db.execute(
        select(MerchandiseOrder).where(
            MerchandiseOrder.registration_id == registration.id,
            MerchandiseOrder.merchandise_id == item.id,
            MerchandiseOrder.status == OrderStatus.CART.value,
            MerchandiseOrder.selected_size.is_(None) if size is None else MerchandiseOrder.selected_size == size,
        )
    )
    line = existing.scalar_one_or_none()
    quantity = item_data.quantity + (line.quantity if line else 0)
    _check_stock(item, quantity)

    if line is None:
        line = MerchandiseOrder(
            registration_id=registration.id,
            merchandise_id=item.id,
            selected_size=size,
            unit_price=item.price,
            status=OrderStatus.CART.value,
        )
        db.add(line)
    line.merchandise = item
    line.quantity = quantity
    line.total_price = line.unit_price * quantity
    await db.flush()
    await db.commit()

    logger.info("cart_item_added", registration_id=registration.id, item_id=item.id, quantity=quantity)
    await invalidator.invalidate(Mutation.CART_CHANGED, event_id=event_id, registration_id=registration.id)
    return line_dict(line)


async def update_cart_item(
    db: AsyncSession,
    event_id: int,
    user_id: int,
    line_id: int,
    item_data: CartItemUpdate,
    invalidator: CacheInvalidator,
) -> dict:
    registration = await checkout_eligible_registration(db, event_id, user_id)
    line = await _cart_line(db, registration.id, line_id)
    item = line.merchandise

    changes = item_data.model_dump(exclude_unset=True)
    if "selected_size" in changes:
        line.selected_size = _resolve_size(item, changes["selected_size"])
    if changes.get("quantity") is not None:
        line.quantity = changes["quantity"]
    _check_stock(item, line.quantity)
    line.total_price = line.unit_price * line.quantity
    await db.flush()
    await db.commit()

    logger.info("cart_item_updated", line_id=line.id, quantity=line.quantity)
    await invalidator.invalidate(Mutation.CART_CHANGED, event_id=event_id, registration_id=registration.id)
    return line_dict(line)


async def remove_cart_item(
    db: AsyncSession,
    event_id: int,
    user_id: int,
    line_id: int,
    invalidator: CacheInvalidator,
) -> None:
    registration = await checkout_eligible_registration(db, event_id, user_id)
    line = await _cart_line(db, registration.id, line_id)
    await db.delete(line)
    await db.flush()
    await db.commit()

    logger.info("cart_item_removed", line_id=line_id)
    await invalidator.invalidate(Mutation.CART_CHANGED, event_id=event_id, registration_id=registration.id)


async def checkout(
    db: AsyncSession,
    event_id: int,
    user,
    checkout_data: CheckoutRequest,
    invalidator: CacheInvalidator,
    notifications: NotificationDispatcher,
    request: Optional[Request] = None,
) -> dict:
    try:
        registration = await checkout_eligible_registration(db, event_id, user.id)
        lines = await _lines(db, registration.id, OrderStatus.CART)
        if not lines:
            raise RuleViolation("Cart is empty", code="CART_EMPTY")

        requested: dict[int, int] = defaultdict(int)
        items: dict[int, EventMerchandise] = {}
        for line in lines:
            if not line.merchandise.is_active:
                raise RuleViolation(f"{line.merchandise.name} is no longer available", code="ITEM_UNAVAILABLE")
            requested[line.merchandise_id] += line.quantity
            items[line.merchandise_id] = line.merchandise
        for item_id, quantity in requested.items():
            _check_stock(items[item_id], quantity)
    except RuleViolation:
        record_checkout_attempt("rejected")
        raise

    names = {item_id: item.name for item_id, item in items.items()}
    for item_id, quantity in requested.items():
        if items[item_id].stock_quantity is None:
            continue
        result = await db.execute(
            update(EventMerchandise)
            .where(EventMerchandise.id == item_id, EventMerchandise.stock_quantity >= quantity)
            .values(stock_quantity=EventMerchandise.stock_quantity - quantity)
        )
        if result.rowcount == 0:
            # Stock moved since the pre-check; undo every decrement of this checkout
            await db.rollback()
            record_checkout_attempt("stock_conflict")
            logger.warning("checkout_stock_conflict", event_id=event_id, item_id=item_id, requested=quantity)
            raise ConflictError(
                f"Insufficient stock for {names[item_id]}. Please review your cart.",
                code="INSUFFICIENT_STOCK",
            )

    order_total = sum(line.total_price for line in lines)
    for line in lines:
        line.status = OrderStatus.ORDERED.value

    merchandise = calculate_fees(
        merchandise_lines=[MerchandiseLine(line.unit_price, line.quantity) for line in lines],
        merchandise_total=registration.merchandise_total,
    ).merchandise
    fees = FeeBreakdown(
        registration=registration.registration_fee_paid,
        guests=registration.guest_fees_paid,
        merchandise=merchandise,
        donation=registration.donation_amount,
    )
    registration.merchandise_total = fees.merchandise
    registration.total_amount = fees.total
    if order_total > 0:
        registration.payment_status = PaymentStatus.PENDING.value
    registration.last_modified_at = utcnow()

    await db.flush()
    await log_activity(
        db, user.id, "merchandise_checkout",
        {"eventId": event_id, "registrationId": registration.id, "orderTotal": order_total, "lines": len(lines)},
        request,
    )
    await db.commit()
    record_checkout_attempt("success")

    order = {
        "registration_id": registration.id,
        "items": [line_dict(line) for line in lines],
        "total_amount": order_total,
        "registration_total_amount": registration.total_amount,
        "order_date": utcnow(),
        "payment_reference": checkout_data.payment_reference,
        "notes": checkout_data.notes,
    }
    logger.info(
        "checkout_completed",
        registration_id=registration.id,
        order_total=order_total,
        registration_total=registration.total_amount,
    )
    await invalidator.invalidate(Mutation.ORDER_PLACED, event_id=event_id, registration_id=registration.id)
    notifications.dispatch("send_merchandise_confirmation", user, registration.event, order)
    return order
