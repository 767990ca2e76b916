"""
Custom registration form attached to an event.
"""

import enum

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from alumni_api.db.base import Base, TimestampMixin


class FieldType(str, enum.Enum):
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    NUMBER = "NUMBER"
    SELECT = "SELECT"
    RADIO = "RADIO"
    CHECKBOX = "CHECKBOX"
    DATE = "DATE"


class EventForm(Base, TimestampMixin):
    __tablename__ = "event_forms"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), unique=True, nullable=False)
    title = Column(String(255), nullable=False, default="Registration Form")
    description = Column(String(1000), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    event = relationship("Event", back_populates="form")
    fields = relationship(
        "EventFormField",
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="EventFormField.order_index",
    )


class EventFormField(Base, TimestampMixin):
    __tablename__ = "event_form_fields"

    id = Column(Integer, primary_key=True, index=True)
    form_id = Column(Integer, ForeignKey("event_forms.id", ondelete="CASCADE"), nullable=False, index=True)
    field_name = Column(String(100), nullable=False)
    field_label = Column(String(255), nullable=False)
    field_type = Column(String(20), nullable=False, default=FieldType.TEXT.value)
    options = Column(JSON, nullable=True)
    is_required = Column(Boolean, nullable=False, default=False)
    order_index = Column(Integer, nullable=False, default=0)

    form = relationship("EventForm", back_populates="fields")
