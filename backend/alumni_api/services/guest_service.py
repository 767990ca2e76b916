"""
Guest management on an existing registration.

Fee policy:
  - adding a guest charges the event's guest fee; the registration total grows
    and the payment status drops back to PENDING
  - cancelling a guest is not refunded: the guest's fee moves into the
    donation component, so the registration total never decreases

Every change goes through the same modification window as the registration
itself.
"""

from typing import Optional

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.core.clock import utcnow
from alumni_api.core.exceptions import NotFoundError, RuleViolation
from alumni_api.core.logging import get_logger
from alumni_api.models.guest import EventGuest, GuestStatus
from alumni_api.models.registration import EventRegistration, PaymentStatus
from alumni_api.schemas.guest import GuestCreate, GuestUpdate
from alumni_api.services.audit_service import log_activity
from alumni_api.services.cache_invalidation import CacheInvalidator, Mutation
from alumni_api.services.fee_service import FeeBreakdown, calculate_fees, fees_after_guest_removal
from alumni_api.services.modification_service import can_modify_registration
from alumni_api.services.notification_service import NotificationDispatcher
from alumni_api.services.registration_query_service import get_user_registration

logger = get_logger(__name__)


def _require_window(registration: EventRegistration) -> None:
    check = can_modify_registration(registration.event, registration)
    if not check.allowed:
        raise RuleViolation(check.message, code=check.reason.value)


def _apply_fees(registration: EventRegistration, fees: FeeBreakdown) -> None:
    registration.registration_fee_paid = fees.registration
    registration.guest_fees_paid = fees.guests
    registration.merchandise_total = fees.merchandise
    registration.donation_amount = fees.donation
    registration.total_amount = fees.total


def _totals(registration: EventRegistration, previous_total: float) -> dict:
    additional = registration.total_amount - previous_total
    return {
        "active_guests": registration.active_guests,
        "guest_fees_paid": registration.guest_fees_paid,
        "donation_amount": registration.donation_amount,
        "total_amount": registration.total_amount,
        "additional_payment_required": additional > 0,
        "additional_amount": max(additional, 0),
    }


async def _get_guest(db: AsyncSession, registration: EventRegistration, guest_id: int) -> EventGuest:
    result = await db.execute(
        select(EventGuest).where(EventGuest.id == guest_id, EventGuest.registration_id == registration.id)
    )
    guest = result.scalar_one_or_none()
    if guest is None:
        raise NotFoundError("Guest not found")
    return guest


async def list_guests(db: AsyncSession, event_id: int, user_id: int) -> list[EventGuest]:
    registration = await get_user_registration(db, event_id, user_id)
    result = await db.execute(
        select(EventGuest).where(EventGuest.registration_id == registration.id).order_by(EventGuest.id)
    )
    return list(result.scalars().all())


async def add_guest(
    db: AsyncSession,
    event_id: int,
    user,
    guest_data: GuestCreate,
    invalidator: CacheInvalidator,
    notifications: NotificationDispatcher,
    request: Optional[Request] = None,
) -> dict:
    registration = await get_user_registration(db, event_id, user.id)
    event = registration.event
    if not event.has_guests:
        raise RuleViolation("Guests are not allowed for this event", code="GUESTS_NOT_ALLOWED")
    _require_window(registration)
    if event.has_meals and guest_data.meal_preference is None:
        raise RuleViolation("Meal preference is required for each guest", code="MEAL_PREFERENCE_REQUIRED")

    previous_total = registration.total_amount
    active = registration.active_guests + 1
    fees = calculate_fees(
        registration_fee=registration.registration_fee_paid,
        guest_count=active,
        guest_fee=event.guest_fee,
        merchandise_total=registration.merchandise_total,
        donation_amount=registration.donation_amount,
    )

    guest = EventGuest(
        registration_id=registration.id,
        name=guest_data.name,
        email=guest_data.email,
        phone=guest_data.phone,
        meal_preference=guest_data.meal_preference.value if guest_data.meal_preference else None,
        fees_paid=fees.guest_fee,
        status=GuestStatus.ACTIVE.value,
    )
    db.add(guest)

    _apply_fees(registration, fees)
    registration.active_guests = active
    registration.total_guests += 1
    if registration.total_amount > previous_total:
        registration.payment_status = PaymentStatus.PENDING.value
    registration.modification_count += 1
    registration.last_modified_at = utcnow()

    await db.flush()
    await log_activity(
        db, user.id, "event_guest_add",
        {"eventId": event_id, "registrationId": registration.id, "guestId": guest.id},
        request,
    )
    await db.commit()

    logger.info(
        "guest_added",
        registration_id=registration.id,
        guest_id=guest.id,
        active_guests=registration.active_guests,
        total_amount=registration.total_amount,
    )
    await invalidator.invalidate(Mutation.GUEST_CHANGED, event_id=event_id, registration_id=registration.id)
    notifications.dispatch("send_guest_added", user, event, guest)
    return {"guest": guest, "totals": _totals(registration, previous_total)}


async def update_guest(
    db: AsyncSession,
    event_id: int,
    user,
    guest_id: int,
    guest_data: GuestUpdate,
    invalidator: CacheInvalidator,
    request: Optional[Request] = None,
) -> EventGuest:
    registration = await get_user_registration(db, event_id, user.id)
    _require_window(registration)
    guest = await _get_guest(db, registration, guest_id)
    if guest.status == GuestStatus.CANCELLED.value:
        raise RuleViolation("Cancelled guests cannot be modified", code="GUEST_CANCELLED")

    changes = guest_data.model_dump(exclude_unset=True)
    if "meal_preference" in changes and changes["meal_preference"] is not None:
        changes["meal_preference"] = changes["meal_preference"].value
    for name, value in changes.items():
        setattr(guest, name, value)

    await db.flush()
    await log_activity(
        db, user.id, "event_guest_update",
        {"eventId": event_id, "guestId": guest.id, "fields": sorted(changes)},
        request,
    )
    await db.commit()

    logger.info("guest_updated", guest_id=guest.id, fields=sorted(changes))
    await invalidator.invalidate(Mutation.GUEST_CHANGED, event_id=event_id, registration_id=registration.id)
    return guest


async def cancel_guest(
    db: AsyncSession,
    event_id: int,
    user,
    guest_id: int,
    invalidator: CacheInvalidator,
    request: Optional[Request] = None,
) -> dict:
    registration = await get_user_registration(db, event_id, user.id)
    _require_window(registration)
    guest = await _get_guest(db, registration, guest_id)
    if guest.status == GuestStatus.CANCELLED.value:
        raise RuleViolation("Guest is already cancelled", code="GUEST_CANCELLED")

    previous_total = registration.total_amount
    current = FeeBreakdown(
        registration=registration.registration_fee_paid,
        guests=registration.guest_fees_paid,
        merchandise=registration.merchandise_total,
        donation=registration.donation_amount,
        guest_count=registration.active_guests,
        guest_fee=guest.fees_paid,
    )
    _apply_fees(registration, fees_after_guest_removal(current))

    guest.status = GuestStatus.CANCELLED.value
    registration.active_guests = max(registration.active_guests - 1, 0)
    registration.modification_count += 1
    registration.last_modified_at = utcnow()

    await db.flush()
    await log_activity(
        db, user.id, "event_guest_cancel",
        {"eventId": event_id, "guestId": guest.id, "donatedFee": guest.fees_paid},
        request,
    )
    await db.commit()

    logger.info(
        "guest_cancelled",
        registration_id=registration.id,
        guest_id=guest.id,
        donated_fee=guest.fees_paid,
    )
    await invalidator.invalidate(Mutation.GUEST_CHANGED, event_id=event_id, registration_id=registration.id)
    return {"guest": guest, "totals": _totals(registration, previous_total)}
