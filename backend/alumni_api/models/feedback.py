"""
Post-event feedback: one form per event, its fields, and the submitted answers.

Every submission writes one response row per answered field; rows of the
same submission share a `submission_id`. Anonymous rows carry no user.
"""

import enum

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from alumni_api.db.base import Base, TimestampMixin


class FeedbackFieldType(str, enum.Enum):
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    EMAIL = "EMAIL"
    SELECT = "SELECT"
    RADIO = "RADIO"
    CHECKBOX = "CHECKBOX"
    RATING = "RATING"
    LIKERT = "LIKERT"


LIKERT_OPTIONS = ("strongly_disagree", "disagree", "neutral", "agree", "strongly_agree")


class EventFeedbackForm(Base, TimestampMixin):
    __tablename__ = "event_feedback_forms"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), unique=True, nullable=False)
    title = Column(String(255), nullable=False, default="Event Feedback")
    description = Column(String(1000), nullable=True)
    allow_anonymous = Column(Boolean, nullable=False, default=True)
    show_after_event = Column(Boolean, nullable=False, default=True)
    close_after_hours = Column(Integer, nullable=False, default=168)
    completion_message = Column(String(500), nullable=False, default="Thank you for your feedback!")
    is_active = Column(Boolean, nullable=False, default=True)

    event = relationship("Event", back_populates="feedback_form")
    fields = relationship(
        "EventFeedbackField",
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="EventFeedbackField.order_index",
    )


class EventFeedbackField(Base, TimestampMixin):
    __tablename__ = "event_feedback_fields"

    id = Column(Integer, primary_key=True, index=True)
    form_id = Column(Integer, ForeignKey("event_feedback_forms.id", ondelete="CASCADE"), nullable=False, index=True)
    field_name = Column(String(100), nullable=False)
    field_label = Column(String(255), nullable=False)
    field_type = Column(String(20), nullable=False, default=FeedbackFieldType.TEXT.value)
    options = Column(JSON, nullable=True)
    is_required = Column(Boolean, nullable=False, default=False)
    # RATING scale
    min_value = Column(Integer, nullable=True)
    max_value = Column(Integer, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)

    form = relationship("EventFeedbackForm", back_populates="fields")


class EventFeedbackResponse(Base, TimestampMixin):
    __tablename__ = "event_feedback_responses"

    id = Column(Integer, primary_key=True, index=True)
    form_id = Column(Integer, ForeignKey("event_feedback_forms.id", ondelete="CASCADE"), nullable=False, index=True)
    field_id = Column(Integer, ForeignKey("event_feedback_fields.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    submission_id = Column(String(32), nullable=False, index=True)
    response = Column(Text, nullable=False)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    ip_address = Column(String(64), nullable=True)

    field = relationship("EventFeedbackField")
    user = relationship("User")
