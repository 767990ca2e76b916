"""
Declarative base and shared column mixins.
"""

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import declarative_base

from alumni_api.core.clock import utcnow

Base = declarative_base()


class TimestampMixin:
    # Python-side values are set on flush so rows never need a refresh
    # (and an implicit lazy load) before serialization.
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )
