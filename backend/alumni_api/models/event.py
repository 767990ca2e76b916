"""
Event model: schedule, capacity, fee schedule and feature flags.

Key design decisions:
- Registration eligibility is never persisted; it is derived on every read
  from the schedule, capacity and the confirmed-registration count.
- `status` is the admin-controlled lifecycle, independent of eligibility.
- Index on `event_date` for upcoming-event listings.
"""

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from alumni_api.db.base import Base, TimestampMixin


class EventStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    REGISTRATION_OPEN = "REGISTRATION_OPEN"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    ARCHIVED = "ARCHIVED"


# Lifecycle states in which users may register at all
REGISTRABLE_STATUSES = (EventStatus.PUBLISHED.value, EventStatus.REGISTRATION_OPEN.value)

Money = Numeric(10, 2, asdecimal=False)


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(300), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    venue = Column(String(255), nullable=True)

    # Schedule
    event_date = Column(DateTime(timezone=True), nullable=False)
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)
    registration_start_date = Column(DateTime(timezone=True), nullable=True)
    registration_end_date = Column(DateTime(timezone=True), nullable=True)

    max_capacity = Column(Integer, nullable=True)  # NULL = unlimited

    # Fee schedule
    registration_fee = Column(Money, nullable=False, default=0)
    guest_fee = Column(Money, nullable=False, default=0)

    # Feature flags
    has_registration = Column(Boolean, nullable=False, default=True)
    has_external_link = Column(Boolean, nullable=False, default=False)
    external_registration_link = Column(String(500), nullable=True)
    has_custom_form = Column(Boolean, nullable=False, default=False)
    has_meals = Column(Boolean, nullable=False, default=False)
    has_guests = Column(Boolean, nullable=False, default=False)
    has_donations = Column(Boolean, nullable=False, default=False)
    has_merchandise = Column(Boolean, nullable=False, default=False)

    # Modification window
    allow_form_modification = Column(Boolean, nullable=False, default=True)
    form_modification_deadline_hours = Column(Integer, nullable=True, default=24)

    status = Column(String(30), nullable=False, default=EventStatus.DRAFT.value)
    category_id = Column(Integer, ForeignKey("event_categories.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Relationships
    created_by = relationship("User")
    category = relationship("EventCategory", back_populates="events")
    form = relationship("EventForm", back_populates="event", uselist=False, cascade="all, delete-orphan")
    registrations = relationship("EventRegistration", back_populates="event", cascade="all, delete-orphan")
    merchandise = relationship("EventMerchandise", back_populates="event", cascade="all, delete-orphan")
    sections = relationship(
        "EventSection", back_populates="event", cascade="all, delete-orphan", order_by="EventSection.order_index"
    )
    feedback_form = relationship(
        "EventFeedbackForm", back_populates="event", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("registration_fee >= 0", name="check_event_registration_fee_non_negative"),
        CheckConstraint("guest_fee >= 0", name="check_event_guest_fee_non_negative"),
        CheckConstraint("max_capacity IS NULL OR max_capacity > 0", name="check_event_capacity_positive"),
        Index("ix_events_event_date", "event_date"),
        Index("ix_events_status_date", "status", "event_date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, slug={self.slug}, status={self.status})>"
