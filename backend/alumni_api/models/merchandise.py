"""
Merchandise items sold alongside an event, and the order rows (cart lines).

A cart line is an order row in CART state; checkout flips every line to
ORDERED, decrements stock and folds the line totals into the registration.
"""

import enum

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from alumni_api.db.base import Base, TimestampMixin
from alumni_api.models.event import Money


class OrderStatus(str, enum.Enum):
    CART = "CART"
    ORDERED = "ORDERED"


class EventMerchandise(Base, TimestampMixin):
    __tablename__ = "event_merchandise"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Money, nullable=False)
    stock_quantity = Column(Integer, nullable=True)  # NULL = unlimited
    available_sizes = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    order_index = Column(Integer, nullable=False, default=0)

    event = relationship("Event", back_populates="merchandise")
    orders = relationship("MerchandiseOrder", back_populates="merchandise")

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_merchandise_price_non_negative"),
        # Final safety net against overselling
        CheckConstraint(
            "stock_quantity IS NULL OR stock_quantity >= 0", name="check_merchandise_stock_non_negative"
        ),
    )


class MerchandiseOrder(Base, TimestampMixin):
    __tablename__ = "merchandise_orders"

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(
        Integer, ForeignKey("event_registrations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    merchandise_id = Column(Integer, ForeignKey("event_merchandise.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    selected_size = Column(String(20), nullable=True)
    unit_price = Column(Money, nullable=False)
    total_price = Column(Money, nullable=False)
    status = Column(String(20), nullable=False, default=OrderStatus.CART.value)

    registration = relationship("EventRegistration", back_populates="merchandise_orders")
    merchandise = relationship("EventMerchandise", back_populates="orders")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_order_quantity_positive"),
    )
