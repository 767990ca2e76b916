"""
Registration orchestrator.

REGISTRATION PIPELINE
=====================

    1. load event (404), lifecycle status must accept registrations
    2. re-derive eligibility; anything but OPEN is rejected with its reason
    3. duplicate check on (event, user) -> 409
    4. required custom-form fields present, unknown field ids rejected
    5. meal preference present when the event serves meals
    6. fee breakdown with zero guests and no merchandise
    7. persist registration + form responses as one unit (commit)
    8. audit row, cache eviction
    9. confirmation notification dispatched in the background

Persist-then-notify: a notification failure is logged by the dispatcher and
never rolls back or fails the registration.

The orchestrator talks only to the repository, cache invalidator and
notification dispatcher it is given, so the whole pipeline runs against
in-memory fakes in tests.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from alumni_api.core.clock import utcnow
from alumni_api.core.exceptions import ConflictError, NotFoundError, RuleViolation
from alumni_api.core.logging import get_logger
from alumni_api.core.metrics import record_registration_attempt, registration_latency
from alumni_api.models.event import REGISTRABLE_STATUSES
from alumni_api.models.registration import (
    EventFormResponse,
    EventRegistration,
    PaymentStatus,
    RegistrationStatus,
)
from alumni_api.services.cache_invalidation import CacheInvalidator, Mutation
from alumni_api.services.eligibility_service import check_registration_status
from alumni_api.services.fee_service import calculate_fees
from alumni_api.services.interfaces.registration_repository import RegistrationRepository
from alumni_api.services.modification_service import ModificationCheck, can_modify_registration
from alumni_api.services.notification_service import NotificationDispatcher

logger = get_logger(__name__)


@dataclass
class RegistrationOutcome:
    registration: EventRegistration
    payment_required: bool
    payment_amount: float

    def as_dict(self) -> dict:
        return {
            "registration": self.registration,
            "payment_required": self.payment_required,
            "payment_amount": self.payment_amount,
        }


@dataclass
class MyRegistration:
    registration: EventRegistration
    can_modify: ModificationCheck


def _active_form_fields(event) -> list:
    form = getattr(event, "form", None)
    if not event.has_custom_form or form is None or not form.is_active:
        return []
    return list(form.fields)


def validate_form_responses(event, responses: Sequence) -> None:
    """Reject unknown field ids, and required fields whose id is absent (labels listed)."""
    fields = _active_form_fields(event)
    known = {field.id for field in fields}

    unknown = sorted({r.field_id for r in responses if r.field_id not in known})
    if unknown:
        raise RuleViolation(
            "Invalid form field(s) submitted",
            code="INVALID_FORM_FIELD",
            errors=[{"fieldId": field_id, "message": "Unknown form field"} for field_id in unknown],
        )

    answered = {r.field_id for r in responses}
    missing = [field for field in fields if field.is_required and field.id not in answered]
    if missing:
        raise RuleViolation(
            f"Missing required fields: {', '.join(field.field_label for field in missing)}",
            code="MISSING_REQUIRED_FIELDS",
            errors=[
                {"fieldId": field.id, "fieldName": field.field_name, "message": f"{field.field_label} is required"}
                for field in missing
            ],
        )


class RegistrationOrchestrator:
    def __init__(
        self,
        repository: RegistrationRepository,
        invalidator: CacheInvalidator,
        notifications: NotificationDispatcher,
    ):
        self.repository = repository
        self.invalidator = invalidator
        self.notifications = notifications

    # -- register ---------------------------------------------------------

    async def register(
        self,
        event_id: int,
        user,
        meal_preference: Optional[str] = None,
        form_responses: Sequence = (),
    ) -> RegistrationOutcome:
        with registration_latency.time():
            try:
                event = await self._load_registrable_event(event_id)
                await self._check_eligibility(event)
                await self._check_not_registered(event, user)
                validate_form_responses(event, form_responses)
                self._check_meal_preference(event, meal_preference)
                registration = await self._persist(event, user, meal_preference, form_responses)
            except ConflictError:
                record_registration_attempt("conflict")
                raise
            except (NotFoundError, RuleViolation):
                record_registration_attempt("rejected")
                raise

        record_registration_attempt("success")
        await self.repository.log_activity(
            user.id,
            "event_registration",
            {"eventId": event.id, "registrationId": registration.id, "totalAmount": registration.total_amount},
        )
        await self.invalidator.invalidate(Mutation.REGISTRATION_CHANGED, event_id=event.id)
        self.notifications.dispatch("send_registration_confirmation", user, event, registration)

        total = registration.total_amount
        return RegistrationOutcome(registration=registration, payment_required=total > 0, payment_amount=total)

    async def _load_registrable_event(self, event_id: int):
        event = await self.repository.get_event(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        if event.status not in REGISTRABLE_STATUSES:
            raise RuleViolation("Event is not open for registration", code="EVENT_NOT_PUBLISHED")
        return event

    async def _check_eligibility(self, event) -> None:
        confirmed = await self.repository.count_confirmed(event.id)
        eligibility = check_registration_status(event, confirmed)
        if not eligibility.can_register:
            logger.info(
                "registration_rejected",
                event_id=event.id,
                state=eligibility.state.value,
                confirmed=confirmed,
            )
            raise RuleViolation(eligibility.message, code=f"REGISTRATION_{eligibility.state.value}")

    async def _check_not_registered(self, event, user) -> None:
        existing = await self.repository.get_registration(event.id, user.id)
        if existing is not None:
            logger.warning("registration_duplicate", event_id=event.id, user_id=user.id)
            raise ConflictError("You are already registered for this event", code="ALREADY_REGISTERED")

    @staticmethod
    def _check_meal_preference(event, meal_preference: Optional[str]) -> None:
        if event.has_meals and not meal_preference:
            raise RuleViolation("Meal preference is required for this event", code="MEAL_PREFERENCE_REQUIRED")

    async def _persist(self, event, user, meal_preference, form_responses) -> EventRegistration:
        fees = calculate_fees(registration_fee=event.registration_fee)
        registration = EventRegistration(
            event_id=event.id,
            user_id=user.id,
            status=RegistrationStatus.CONFIRMED.value,
            payment_status=(PaymentStatus.PENDING if fees.total > 0 else PaymentStatus.COMPLETED).value,
            meal_preference=_meal_value(meal_preference),
            registration_fee_paid=fees.registration,
            guest_fees_paid=fees.guests,
            merchandise_total=fees.merchandise,
            donation_amount=fees.donation,
            total_amount=fees.total,
            total_guests=0,
            active_guests=0,
            modification_count=0,
        )
        responses = [
            EventFormResponse(field_id=r.field_id, response=r.response, version=1)
            for r in form_responses
        ]
        registration = await self.repository.create_registration(registration, responses)
        logger.info(
            "registration_created",
            registration_id=registration.id,
            event_id=event.id,
            user_id=user.id,
            total_amount=registration.total_amount,
        )
        return registration

    # -- my registration --------------------------------------------------

    async def _get_own(self, event_id: int, user_id: int) -> EventRegistration:
        registration = await self.repository.get_registration(event_id, user_id)
        if registration is None:
            raise NotFoundError("Registration not found")
        return registration

    async def get_my_registration(self, event_id: int, user) -> MyRegistration:
        registration = await self._get_own(event_id, user.id)
        return MyRegistration(registration, can_modify_registration(registration.event, registration))

    async def update_my_registration(
        self,
        event_id: int,
        user,
        meal_preference: Optional[str] = None,
        form_responses: Optional[Sequence] = None,
    ) -> EventRegistration:
        registration = await self._get_own(event_id, user.id)
        check = can_modify_registration(registration.event, registration)
        if not check.allowed:
            raise RuleViolation(check.message, code=check.reason.value)

        event = await self.repository.get_event(event_id)
        if meal_preference is not None:
            registration.meal_preference = _meal_value(meal_preference)
        if event.has_meals and not registration.meal_preference:
            raise RuleViolation("Meal preference is required for this event", code="MEAL_PREFERENCE_REQUIRED")

        registration.modification_count = (registration.modification_count or 0) + 1
        registration.last_modified_at = utcnow()

        responses = None
        if form_responses is not None:
            validate_form_responses(event, form_responses)
            responses = [
                EventFormResponse(
                    field_id=r.field_id,
                    response=r.response,
                    version=registration.modification_count + 1,
                )
                for r in form_responses
            ]

        registration = await self.repository.update_registration(registration, responses)
        await self.repository.log_activity(
            user.id,
            "event_registration_update",
            {"eventId": event_id, "registrationId": registration.id, "modificationCount": registration.modification_count},
        )
        await self.invalidator.invalidate(Mutation.REGISTRATION_CHANGED, event_id=event_id)
        logger.info(
            "registration_updated",
            registration_id=registration.id,
            modification_count=registration.modification_count,
        )
        return registration

    async def cancel_my_registration(self, event_id: int, user) -> EventRegistration:
        registration = await self._get_own(event_id, user.id)
        if registration.status == RegistrationStatus.CANCELLED.value:
            raise RuleViolation("Registration is already cancelled", code="ALREADY_CANCELLED")

        check = can_modify_registration(registration.event, registration)
        if not check.allowed:
            raise RuleViolation(check.message, code=check.reason.value)

        cancelled_guests = await self.repository.cancel_registration(registration)
        await self.repository.log_activity(
            user.id,
            "event_registration_cancel",
            {"eventId": event_id, "registrationId": registration.id, "guestsCancelled": cancelled_guests},
        )
        await self.invalidator.invalidate(Mutation.REGISTRATION_CHANGED, event_id=event_id)
        await self.invalidator.invalidate(
            Mutation.GUEST_CHANGED, event_id=event_id, registration_id=registration.id
        )
        logger.info(
            "registration_cancelled",
            registration_id=registration.id,
            guests_cancelled=cancelled_guests,
        )
        return registration


def _meal_value(meal_preference) -> Optional[str]:
    if meal_preference is None:
        return None
    return getattr(meal_preference, "value", meal_preference)
