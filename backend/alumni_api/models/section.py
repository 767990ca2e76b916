"""
Content sections shown on an event page (schedule, venue details, sponsors...).
"""

import enum

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from alumni_api.db.base import Base, TimestampMixin


class SectionType(str, enum.Enum):
    SCHEDULE = "SCHEDULE"
    ORGANIZERS = "ORGANIZERS"
    LOCATION = "LOCATION"
    PRIZES = "PRIZES"
    SPONSORS = "SPONSORS"
    DONATIONS = "DONATIONS"
    MERCHANDISE = "MERCHANDISE"
    CUSTOM = "CUSTOM"


class EventSection(Base, TimestampMixin):
    __tablename__ = "event_sections"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    section_type = Column(String(20), nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    order_index = Column(Integer, nullable=False, default=0)
    is_visible = Column(Boolean, nullable=False, default=True)

    event = relationship("Event", back_populates="sections")
