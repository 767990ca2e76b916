"""
Cart, checkout and order history for the current user's registration.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.api.deps import get_invalidator
from alumni_api.core.security import get_current_user
from alumni_api.db.session import get_db
from alumni_api.models.user import User
from alumni_api.schemas.common import ApiResponse, ok
from alumni_api.schemas.merchandise import (
    CartItemCreate,
    CartItemResponse,
    CartItemUpdate,
    CartResponse,
    CheckoutRequest,
    OrderResult,
)
from alumni_api.services import cart_service
from alumni_api.services.cache_invalidation import CacheInvalidator
from alumni_api.services.notification_service import NotificationDispatcher, get_notification_dispatcher

router = APIRouter(prefix="/events/{event_id}", tags=["Cart"])


@router.get("/cart", response_model=ApiResponse[CartResponse])
async def get_cart(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ok(await cart_service.get_cart(db, event_id, user.id))


@router.post("/cart", response_model=ApiResponse[CartItemResponse], status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    event_id: int,
    item_data: CartItemCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    """Add an item; a second add of the same item and size merges into one line."""
    line = await cart_service.add_to_cart(db, event_id, user.id, item_data, invalidator)
    return ok(line, "Item added to cart")


@router.put("/cart/{item_id}", response_model=ApiResponse[CartItemResponse])
async def update_cart_item(
    event_id: int,
    item_id: int,
    item_data: CartItemUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    line = await cart_service.update_cart_item(db, event_id, user.id, item_id, item_data, invalidator)
    return ok(line, "Cart item updated")


@router.delete("/cart/{item_id}", response_model=ApiResponse[None])
async def remove_cart_item(
    event_id: int,
    item_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
):
    await cart_service.remove_cart_item(db, event_id, user.id, item_id, invalidator)
    return ok(None, "Item removed from cart")


@router.post("/checkout", response_model=ApiResponse[OrderResult])
async def checkout(
    event_id: int,
    request: Request,
    checkout_data: CheckoutRequest = CheckoutRequest(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Place every cart line as an order. Stock is decremented atomically; if any
    item is short the whole checkout is rejected and nothing changes.
    """
    order = await cart_service.checkout(db, event_id, user, checkout_data, invalidator, notifications, request)
    return ok(order, "Order placed successfully")


@router.get("/orders", response_model=ApiResponse[CartResponse])
async def my_orders(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ok(await cart_service.get_orders(db, event_id, user.id))
