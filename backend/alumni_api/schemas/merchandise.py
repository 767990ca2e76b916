"""
Pydantic schemas for merchandise items, cart lines and checkout.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from alumni_api.schemas.common import CamelModel


class MerchandiseCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    price: float = Field(..., ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    available_sizes: list[str] = Field(default_factory=list)
    is_active: bool = True


class MerchandiseUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    price: Optional[float] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    available_sizes: Optional[list[str]] = None
    is_active: Optional[bool] = None


class MerchandiseResponse(CamelModel):
    id: int
    event_id: int
    name: str
    description: Optional[str]
    price: float
    stock_quantity: Optional[int]
    available_sizes: list[str]
    is_active: bool
    order_index: int


class CartItemCreate(CamelModel):
    merchandise_id: int
    quantity: int = Field(..., gt=0, le=100)
    selected_size: Optional[str] = None


class CartItemUpdate(CamelModel):
    quantity: Optional[int] = Field(None, gt=0, le=100)
    selected_size: Optional[str] = None


class CartItemResponse(CamelModel):
    id: int
    merchandise_id: int
    name: str
    quantity: int
    selected_size: Optional[str]
    unit_price: float
    total_price: float
    status: str
    stock_status: str


class CartSummary(CamelModel):
    item_count: int
    total_quantity: int
    total_amount: float


class CartResponse(CamelModel):
    registration_id: int
    items: list[CartItemResponse]
    summary: CartSummary


class CheckoutRequest(CamelModel):
    payment_reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=1000)


class OrderResult(CamelModel):
    registration_id: int
    items: list[CartItemResponse]
    total_amount: float
    registration_total_amount: float
    order_date: datetime
    payment_reference: Optional[str] = None
    notes: Optional[str] = None
