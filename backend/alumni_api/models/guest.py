"""
Guest attached to a registration.
"""

import enum

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from alumni_api.db.base import Base, TimestampMixin
from alumni_api.models.event import Money


class GuestStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class EventGuest(Base, TimestampMixin):
    __tablename__ = "event_guests"

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(
        Integer, ForeignKey("event_registrations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(150), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    meal_preference = Column(String(10), nullable=True)
    fees_paid = Column(Money, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=GuestStatus.ACTIVE.value)

    registration = relationship("EventRegistration", back_populates="guests")
