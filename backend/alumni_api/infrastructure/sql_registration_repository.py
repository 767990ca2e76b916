"""
SQLAlchemy implementation of the registration repository.

Each write method commits, so the orchestrator can dispatch notifications
strictly after the registration is durable. A failure before the commit
rolls back the whole unit (registration row plus its form responses).
"""

from typing import Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from alumni_api.core.clock import utcnow
from alumni_api.core.exceptions import ConflictError
from alumni_api.core.logging import get_logger
from alumni_api.models.activity_log import ActivityLog
from alumni_api.models.event import Event
from alumni_api.models.form import EventForm
from alumni_api.models.guest import EventGuest, GuestStatus
from alumni_api.models.registration import EventRegistration, RegistrationStatus
from alumni_api.services.interfaces.registration_repository import RegistrationRepository

logger = get_logger(__name__)


class SqlRegistrationRepository(RegistrationRepository):
    def __init__(self, db: AsyncSession, ip_address: Optional[str] = None, user_agent: Optional[str] = None):
        self.db = db
        self.ip_address = ip_address
        self.user_agent = user_agent

    async def get_event(self, event_id: int) -> Optional[Event]:
        result = await self.db.execute(
            select(Event)
            .where(Event.id == event_id)
            .options(selectinload(Event.form).selectinload(EventForm.fields))
        )
        return result.scalar_one_or_none()

    async def count_confirmed(self, event_id: int) -> int:
        result = await self.db.execute(
            select(func.count(EventRegistration.id)).where(
                EventRegistration.event_id == event_id,
                EventRegistration.status == RegistrationStatus.CONFIRMED.value,
            )
        )
        return result.scalar_one()

    async def get_registration(self, event_id: int, user_id: int) -> Optional[EventRegistration]:
        result = await self.db.execute(
            select(EventRegistration)
            .where(EventRegistration.event_id == event_id, EventRegistration.user_id == user_id)
            .options(
                selectinload(EventRegistration.event),
                selectinload(EventRegistration.form_responses),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_registration(self, registration: EventRegistration, responses: Sequence) -> EventRegistration:
        event_id, user_id = registration.event_id, registration.user_id
        registration.form_responses = list(responses)
        self.db.add(registration)
        try:
            await self.db.flush()
            await self.db.commit()
        except IntegrityError:
            # A concurrent request for the same (event, user) won the unique constraint
            await self.db.rollback()
            logger.warning("registration_duplicate_race", event_id=event_id, user_id=user_id)
            raise ConflictError("You are already registered for this event", code="ALREADY_REGISTERED")
        except Exception:
            await self.db.rollback()
            raise
        return registration

    async def update_registration(
        self, registration: EventRegistration, responses: Optional[Sequence]
    ) -> EventRegistration:
        if responses is not None:
            # delete-orphan cascade removes the previous version
            registration.form_responses = list(responses)
        try:
            await self.db.flush()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return registration

    async def cancel_registration(self, registration: EventRegistration) -> int:
        now = utcnow()
        registration.status = RegistrationStatus.CANCELLED.value
        registration.last_modified_at = now
        try:
            result = await self.db.execute(
                update(EventGuest)
                .where(
                    EventGuest.registration_id == registration.id,
                    EventGuest.status == GuestStatus.ACTIVE.value,
                )
                .values(status=GuestStatus.CANCELLED.value, updated_at=now)
            )
            cancelled_guests = result.rowcount or 0
            registration.active_guests = 0
            await self.db.flush()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return cancelled_guests

    async def log_activity(self, user_id: int, action: str, details: dict) -> None:
        self.db.add(
            ActivityLog(
                user_id=user_id,
                action=action,
                details=details,
                ip_address=self.ip_address,
                user_agent=self.user_agent,
            )
        )
        await self.db.flush()
