"""
Registration of one user for one event, plus its form responses.

Key design decisions:
- Unique constraint on (event_id, user_id): one registration per user per event
- Amount breakdown is stored denormalized; total_amount always equals the sum
  of the four components
- Guests and merchandise orders cascade with the registration
"""

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from alumni_api.db.base import Base, TimestampMixin
from alumni_api.models.event import Money


class RegistrationStatus(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    WAITLIST = "WAITLIST"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class MealPreference(str, enum.Enum):
    VEG = "VEG"
    NON_VEG = "NON_VEG"


class EventRegistration(Base, TimestampMixin):
    __tablename__ = "event_registrations"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=RegistrationStatus.CONFIRMED.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    meal_preference = Column(String(10), nullable=True)

    # Amount breakdown
    registration_fee_paid = Column(Money, nullable=False, default=0)
    guest_fees_paid = Column(Money, nullable=False, default=0)
    merchandise_total = Column(Money, nullable=False, default=0)
    donation_amount = Column(Money, nullable=False, default=0)
    total_amount = Column(Money, nullable=False, default=0)

    total_guests = Column(Integer, nullable=False, default=0)
    active_guests = Column(Integer, nullable=False, default=0)

    modification_count = Column(Integer, nullable=False, default=0)
    last_modified_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    event = relationship("Event", back_populates="registrations")
    user = relationship("User", back_populates="registrations")
    form_responses = relationship("EventFormResponse", back_populates="registration", cascade="all, delete-orphan")
    guests = relationship("EventGuest", back_populates="registration", cascade="all, delete-orphan")
    merchandise_orders = relationship(
        "MerchandiseOrder", back_populates="registration", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_user_registration"),
        CheckConstraint("status IN ('CONFIRMED', 'CANCELLED', 'WAITLIST')", name="check_registration_status"),
        CheckConstraint("total_amount >= 0", name="check_registration_total_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<EventRegistration(id={self.id}, event={self.event_id}, user={self.user_id}, status={self.status})>"


class EventFormResponse(Base, TimestampMixin):
    __tablename__ = "event_form_responses"

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(
        Integer, ForeignKey("event_registrations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    field_id = Column(Integer, ForeignKey("event_form_fields.id", ondelete="CASCADE"), nullable=False)
    response = Column(Text, nullable=False)
    version = Column(Integer, nullable=False, default=1)

    registration = relationship("EventRegistration", back_populates="form_responses")
    field = relationship("EventFormField")
