"""
Tests for merchandise, the cart and atomic checkout.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from alumni_api.models.merchandise import EventMerchandise, MerchandiseOrder
from alumni_api.services import cart_service

REGISTER = {"agreeToTerms": True}


async def create_item(client: AsyncClient, event_id: int, admin_headers: dict, **fields) -> int:
    payload = {"name": "Reunion T-Shirt", "price": 300, "stockQuantity": 10, "availableSizes": []}
    payload.update(fields)
    response = await client.post(f"/api/events/{event_id}/merchandise", json=payload, headers=admin_headers)
    assert response.status_code == 201
    return response.json()["data"]["id"]


async def stock_of(db_session, item_id: int):
    result = await db_session.execute(select(EventMerchandise.stock_quantity).where(EventMerchandise.id == item_id))
    return result.scalar_one()


@pytest.fixture
def shop(client: AsyncClient, make_event, auth_headers, admin_headers):
    """A published event with merchandise and the member registered."""

    async def _make(registration_fee=0):
        event = await make_event(has_merchandise=True, registration_fee=registration_fee)
        event_id = event.id
        response = await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)
        assert response.status_code == 200
        return event_id

    return _make


@pytest.mark.asyncio
async def test_merchandise_listing_hides_inactive(client: AsyncClient, admin_headers, shop):
    event_id = await shop()
    await create_item(client, event_id, admin_headers, name="Mug", price=150)
    await create_item(client, event_id, admin_headers, name="Old Cap", price=100, isActive=False)

    public = await client.get(f"/api/events/{event_id}/merchandise")
    assert [item["name"] for item in public.json()["data"]] == ["Mug"]

    admin = await client.get(f"/api/admin/events/{event_id}/merchandise", headers=admin_headers)
    assert [item["name"] for item in admin.json()["data"]] == ["Mug", "Old Cap"]


@pytest.mark.asyncio
async def test_add_to_cart_merges_same_item(client: AsyncClient, auth_headers, admin_headers, shop):
    event_id = await shop()
    item_id = await create_item(client, event_id, admin_headers)

    first = await client.post(
        f"/api/events/{event_id}/cart", json={"merchandiseId": item_id, "quantity": 2}, headers=auth_headers
    )
    assert first.status_code == 201
    second = await client.post(
        f"/api/events/{event_id}/cart", json={"merchandiseId": item_id, "quantity": 1}, headers=auth_headers
    )
    assert second.json()["data"]["quantity"] == 3

    cart = (await client.get(f"/api/events/{event_id}/cart", headers=auth_headers)).json()["data"]
    assert len(cart["items"]) == 1
    assert cart["summary"] == {"itemCount": 1, "totalQuantity": 3, "totalAmount": 900}


@pytest.mark.asyncio
async def test_size_is_validated(client: AsyncClient, auth_headers, admin_headers, shop):
    event_id = await shop()
    item_id = await create_item(client, event_id, admin_headers, availableSizes=["S", "M", "L"])

    missing = await client.post(
        f"/api/events/{event_id}/cart", json={"merchandiseId": item_id, "quantity": 1}, headers=auth_headers
    )
    assert missing.status_code == 400
    assert missing.json()["code"] == "SIZE_REQUIRED"

    invalid = await client.post(
        f"/api/events/{event_id}/cart",
        json={"merchandiseId": item_id, "quantity": 1, "selectedSize": "XL"},
        headers=auth_headers,
    )
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "Invalid size. Available sizes: S, M, L"

    ok_small = await client.post(
        f"/api/events/{event_id}/cart",
        json={"merchandiseId": item_id, "quantity": 1, "selectedSize": "S"},
        headers=auth_headers,
    )
    ok_large = await client.post(
        f"/api/events/{event_id}/cart",
        json={"merchandiseId": item_id, "quantity": 1, "selectedSize": "L"},
        headers=auth_headers,
    )
    assert ok_small.status_code == ok_large.status_code == 201
    assert ok_small.json()["data"]["id"] != ok_large.json()["data"]["id"]


@pytest.mark.asyncio
async def test_add_more_than_stock_rejected(client: AsyncClient, auth_headers, admin_headers, shop):
    event_id = await shop()
    item_id = await create_item(client, event_id, admin_headers, name="Limited Print", stockQuantity=2)

    response = await client.post(
        f"/api/events/{event_id}/cart", json={"merchandiseId": item_id, "quantity": 3}, headers=auth_headers
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "INSUFFICIENT_STOCK"
    assert body["message"] == "Insufficient stock for Limited Print. Only 2 available"


@pytest.mark.asyncio
async def test_cart_requires_merchandise_enabled(client: AsyncClient, auth_headers, make_event):
    event = await make_event(has_merchandise=False)
    event_id = event.id
    await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)

    response = await client.post(
        f"/api/events/{event_id}/cart", json={"merchandiseId": 1, "quantity": 1}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "MERCHANDISE_NOT_AVAILABLE"


@pytest.mark.asyncio
async def test_update_and_remove_cart_line(client: AsyncClient, auth_headers, admin_headers, shop):
    event_id = await shop()
    item_id = await create_item(client, event_id, admin_headers)
    added = await client.post(
        f"/api/events/{event_id}/cart", json={"merchandiseId": item_id, "quantity": 1}, headers=auth_headers
    )
    line_id = added.json()["data"]["id"]

    updated = await client.put(f"/api/events/{event_id}/cart/{line_id}", json={"quantity": 4}, headers=auth_headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["totalPrice"] == 1200

    removed = await client.delete(f"/api/events/{event_id}/cart/{line_id}", headers=auth_headers)
    assert removed.status_code == 200

    cart = (await client.get(f"/api/events/{event_id}/cart", headers=auth_headers)).json()["data"]
    assert cart["items"] == []


@pytest.mark.asyncio
async def test_checkout_decrements_stock_once(
    client: AsyncClient, auth_headers, admin_headers, db_session, shop, notifier, dispatcher
):
    event_id = await shop(registration_fee=500)
    item_id = await create_item(client, event_id, admin_headers)
    await client.post(
        f"/api/events/{event_id}/cart", json={"merchandiseId": item_id, "quantity": 2}, headers=auth_headers
    )

    response = await client.post(
        f"/api/events/{event_id}/checkout", json={"paymentReference": "UPI-1234"}, headers=auth_headers
    )

    assert response.status_code == 200
    order = response.json()["data"]
    assert order["totalAmount"] == 600
    assert order["registrationTotalAmount"] == 1100
    assert order["paymentReference"] == "UPI-1234"
    assert [line["status"] for line in order["items"]] == ["ORDERED"]
    assert await stock_of(db_session, item_id) == 8

    mine = (await client.get(f"/api/events/{event_id}/my-registration", headers=auth_headers)).json()["data"]
    assert mine["registration"]["merchandiseTotal"] == 600
    assert mine["registration"]["totalAmount"] == 1100
    assert mine["registration"]["paymentStatus"] == "PENDING"

    again = await client.post(f"/api/events/{event_id}/checkout", headers=auth_headers)
    assert again.status_code == 400
    assert again.json()["code"] == "CART_EMPTY"
    assert await stock_of(db_session, item_id) == 8

    orders = (await client.get(f"/api/events/{event_id}/orders", headers=auth_headers)).json()["data"]
    assert orders["summary"]["totalQuantity"] == 2

    await dispatcher.drain()
    assert "merchandise_confirmation" in notifier.kinds()


@pytest.mark.asyncio
async def test_checkout_is_all_or_nothing(client: AsyncClient, auth_headers, admin_headers, db_session, shop):
    event_id = await shop()
    mug_id = await create_item(client, event_id, admin_headers, name="Mug", price=150, stockQuantity=10)
    print_id = await create_item(client, event_id, admin_headers, name="Print", price=400, stockQuantity=3)
    for item_id, quantity in ((mug_id, 2), (print_id, 3)):
        response = await client.post(
            f"/api/events/{event_id}/cart", json={"merchandiseId": item_id, "quantity": quantity}, headers=auth_headers
        )
        assert response.status_code == 201

    # Stock drops below the cart quantity after the item was added
    await client.put(f"/api/events/{event_id}/merchandise/{print_id}", json={"stockQuantity": 1}, headers=admin_headers)

    response = await client.post(f"/api/events/{event_id}/checkout", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "INSUFFICIENT_STOCK"
    assert await stock_of(db_session, mug_id) == 10
    assert await stock_of(db_session, print_id) == 1

    cart = (await client.get(f"/api/events/{event_id}/cart", headers=auth_headers)).json()["data"]
    assert len(cart["items"]) == 2
    assert {line["stockStatus"] for line in cart["items"]} == {"IN_STOCK", "INSUFFICIENT"}

    mine = (await client.get(f"/api/events/{event_id}/my-registration", headers=auth_headers)).json()["data"]
    assert mine["registration"]["merchandiseTotal"] == 0


@pytest.mark.asyncio
async def test_unlimited_stock_is_untouched(client: AsyncClient, auth_headers, admin_headers, db_session, shop):
    event_id = await shop()
    item_id = await create_item(client, event_id, admin_headers, name="Sticker", price=20, stockQuantity=None)
    await client.post(
        f"/api/events/{event_id}/cart", json={"merchandiseId": item_id, "quantity": 50}, headers=auth_headers
    )

    response = await client.post(f"/api/events/{event_id}/checkout", headers=auth_headers)

    assert response.status_code == 200
    assert await stock_of(db_session, item_id) is None


@pytest.mark.asyncio
async def test_ordered_item_cannot_be_deleted(client: AsyncClient, auth_headers, admin_headers, shop):
    event_id = await shop()
    item_id = await create_item(client, event_id, admin_headers)
    await client.post(
        f"/api/events/{event_id}/cart", json={"merchandiseId": item_id, "quantity": 1}, headers=auth_headers
    )
    await client.post(f"/api/events/{event_id}/checkout", headers=auth_headers)

    response = await client.delete(f"/api/events/{event_id}/merchandise/{item_id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "MERCHANDISE_HAS_ORDERS"


@pytest.mark.asyncio
async def test_guarded_decrement_rolls_back_earlier_lines(
    client: AsyncClient, auth_headers, admin_headers, db_session, monkeypatch, shop
):
    event_id = await shop()
    mug_id = await create_item(client, event_id, admin_headers, name="Mug", price=150, stockQuantity=10)
    print_id = await create_item(client, event_id, admin_headers, name="Print", price=400, stockQuantity=3)
    for item_id, quantity in ((mug_id, 2), (print_id, 3)):
        await client.post(
            f"/api/events/{event_id}/cart", json={"merchandiseId": item_id, "quantity": quantity}, headers=auth_headers
        )
    await client.put(f"/api/events/{event_id}/merchandise/{print_id}", json={"stockQuantity": 1}, headers=admin_headers)

    # Stock read as sufficient, then taken by another buyer before the decrement
    monkeypatch.setattr(cart_service, "_check_stock", lambda item, quantity: None)

    response = await client.post(f"/api/events/{event_id}/checkout", headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["code"] == "INSUFFICIENT_STOCK"
    assert await stock_of(db_session, mug_id) == 10
    assert await stock_of(db_session, print_id) == 1

    statuses = (
        await db_session.execute(select(MerchandiseOrder.status).where(MerchandiseOrder.merchandise_id.in_([mug_id, print_id])))
    ).scalars().all()
    assert sorted(statuses) == ["CART", "CART"]

    mine = (await client.get(f"/api/events/{event_id}/my-registration", headers=auth_headers)).json()["data"]
    assert mine["registration"]["merchandiseTotal"] == 0
