"""
Event categories (e.g. REUNION, WORKSHOP). Names are stored upper-cased and unique.
"""

from sqlalchemy import Boolean, Column, Integer, String, Text
from sqlalchemy.orm import relationship

from alumni_api.db.base import Base, TimestampMixin


class EventCategory(Base, TimestampMixin):
    __tablename__ = "event_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    events = relationship("Event", back_populates="category")

    def __repr__(self) -> str:
        return f"<EventCategory(id={self.id}, name={self.name})>"
