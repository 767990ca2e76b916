"""
Tests for registration endpoints, end to end through the API.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from alumni_api.core.clock import utcnow
from alumni_api.infrastructure.sql_registration_repository import SqlRegistrationRepository
from alumni_api.models.activity_log import ActivityLog
from alumni_api.models.guest import EventGuest, GuestStatus
from alumni_api.models.registration import EventRegistration

REGISTER = {"agreeToTerms": True}


async def save_form(client: AsyncClient, event_id: int, admin_headers: dict) -> dict:
    response = await client.put(
        f"/api/events/{event_id}/form",
        json={
            "title": "Reunion Details",
            "fields": [
                {"fieldName": "batch_year", "fieldLabel": "Batch Year", "fieldType": "NUMBER", "isRequired": True},
                {
                    "fieldName": "tshirt_size",
                    "fieldLabel": "T-Shirt Size",
                    "fieldType": "SELECT",
                    "options": ["S", "M", "L"],
                    "isRequired": True,
                },
            ],
        },
        headers=admin_headers,
    )
    assert response.status_code == 200
    return {field["fieldName"]: field["id"] for field in response.json()["data"]["fields"]}


@pytest.mark.asyncio
async def test_register_for_free_event(client: AsyncClient, auth_headers, test_event, notifier, dispatcher):
    event_id = test_event.id
    response = await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Successfully registered for event"
    assert body["data"]["paymentRequired"] is False
    registration = body["data"]["registration"]
    assert registration["status"] == "CONFIRMED"
    assert registration["paymentStatus"] == "COMPLETED"
    assert registration["totalAmount"] == 0

    await dispatcher.drain()
    assert notifier.kinds() == ["registration_confirmation"]


@pytest.mark.asyncio
async def test_register_paid_event(client: AsyncClient, auth_headers, make_event):
    event = await make_event(registration_fee=500)
    response = await client.post(f"/api/events/{event.id}/register", json=REGISTER, headers=auth_headers)

    data = response.json()["data"]
    assert data["paymentRequired"] is True
    assert data["paymentAmount"] == 500
    assert data["registration"]["registrationFeePaid"] == 500
    assert data["registration"]["totalAmount"] == 500
    assert data["registration"]["paymentStatus"] == "PENDING"


@pytest.mark.asyncio
async def test_register_requires_terms(client: AsyncClient, auth_headers, test_event):
    response = await client.post(
        f"/api/events/{test_event.id}/register", json={"agreeToTerms": False}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_register_requires_auth(client: AsyncClient, test_event):
    response = await client.post(f"/api/events/{test_event.id}/register", json=REGISTER)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_duplicate_registration_conflicts(client: AsyncClient, auth_headers, test_event):
    event_id = test_event.id
    first = await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)
    assert first.status_code == 200

    second = await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)
    assert second.status_code == 409
    assert second.json()["code"] == "ALREADY_REGISTERED"


@pytest.mark.asyncio
async def test_full_event_rejects_third_member(client: AsyncClient, make_event, make_user):
    event = await make_event(max_capacity=2)
    event_id = event.id

    for _ in range(2):
        _, headers = await make_user()
        response = await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=headers)
        assert response.status_code == 200

    _, headers = await make_user()
    response = await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=headers)
    assert response.status_code == 400
    assert response.json()["code"] == "REGISTRATION_FULL"

    status = await client.get(f"/api/events/{event_id}/registration-status")
    assert status.json()["data"]["status"] == "FULL"


@pytest.mark.asyncio
async def test_cancelled_place_is_freed(client: AsyncClient, make_event, make_user):
    event = await make_event(max_capacity=1)
    event_id = event.id
    _, first = await make_user()
    _, second = await make_user()

    await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=first)
    cancel = await client.delete(f"/api/events/{event_id}/my-registration", headers=first)
    assert cancel.status_code == 200

    response = await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=second)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_draft_event_not_open(client: AsyncClient, auth_headers, make_event):
    event = await make_event(status="DRAFT")
    response = await client.post(f"/api/events/{event.id}/register", json=REGISTER, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "EVENT_NOT_PUBLISHED"


@pytest.mark.asyncio
async def test_missing_required_field_names_label(client: AsyncClient, auth_headers, admin_headers, test_event):
    event_id = test_event.id
    fields = await save_form(client, event_id, admin_headers)

    response = await client.post(
        f"/api/events/{event_id}/register",
        json={**REGISTER, "formResponses": [{"fieldId": fields["batch_year"], "response": "2012"}]},
        headers=auth_headers,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "MISSING_REQUIRED_FIELDS"
    assert "T-Shirt Size" in body["message"]
    assert "Batch Year" not in body["message"]


@pytest.mark.asyncio
async def test_register_with_form_and_update(
    client: AsyncClient, auth_headers, admin_headers, db_session, test_event
):
    event_id = test_event.id
    fields = await save_form(client, event_id, admin_headers)
    answers = [
        {"fieldId": fields["batch_year"], "response": "2012"},
        {"fieldId": fields["tshirt_size"], "response": "M"},
    ]

    response = await client.post(
        f"/api/events/{event_id}/register", json={**REGISTER, "formResponses": answers}, headers=auth_headers
    )
    assert response.status_code == 200
    assert {r["version"] for r in response.json()["data"]["registration"]["formResponses"]} == {1}

    answers[1]["response"] = "L"
    update = await client.put(
        f"/api/events/{event_id}/my-registration", json={"formResponses": answers}, headers=auth_headers
    )
    assert update.status_code == 200
    data = update.json()["data"]
    assert data["modificationCount"] == 1
    responses = {r["fieldId"]: (r["response"], r["version"]) for r in data["formResponses"]}
    assert responses[fields["tshirt_size"]] == ("L", 2)

    mine = await client.get(f"/api/events/{event_id}/my-registration", headers=auth_headers)
    assert mine.json()["data"]["canModify"]["allowed"] is True
    assert len(mine.json()["data"]["registration"]["formResponses"]) == 2

    actions = (await db_session.execute(select(ActivityLog.action))).scalars().all()
    assert "event_registration" in actions
    assert "event_registration_update" in actions


@pytest.mark.asyncio
async def test_meal_preference_required(client: AsyncClient, auth_headers, make_event):
    event = await make_event(has_meals=True)
    event_id = event.id

    response = await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "MEAL_PREFERENCE_REQUIRED"

    response = await client.post(
        f"/api/events/{event_id}/register", json={**REGISTER, "mealPreference": "NON_VEG"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["registration"]["mealPreference"] == "NON_VEG"


@pytest.mark.asyncio
async def test_past_deadline_update_and_cancel_rejected(client: AsyncClient, auth_headers, make_event):
    event = await make_event(event_date=utcnow() + timedelta(hours=6), form_modification_deadline_hours=24)
    event_id = event.id
    response = await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)
    assert response.status_code == 200

    update = await client.put(
        f"/api/events/{event_id}/my-registration", json={"mealPreference": "VEG"}, headers=auth_headers
    )
    cancel = await client.delete(f"/api/events/{event_id}/my-registration", headers=auth_headers)

    assert update.status_code == cancel.status_code == 400
    assert update.json()["code"] == cancel.json()["code"] == "MODIFICATION_DEADLINE_PASSED"

    mine = await client.get(f"/api/events/{event_id}/my-registration", headers=auth_headers)
    assert mine.json()["data"]["canModify"]["allowed"] is False


@pytest.mark.asyncio
async def test_cancel_cascades_to_guests(client: AsyncClient, auth_headers, db_session, make_event):
    event = await make_event(has_guests=True, guest_fee=100)
    event_id = event.id
    await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)
    for name in ("Guest One", "Guest Two"):
        response = await client.post(f"/api/events/{event_id}/guests", json={"name": name}, headers=auth_headers)
        assert response.status_code == 201

    response = await client.delete(f"/api/events/{event_id}/my-registration", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "CANCELLED"
    assert data["activeGuests"] == 0

    statuses = (await db_session.execute(select(EventGuest.status))).scalars().all()
    assert statuses == [GuestStatus.CANCELLED.value] * 2

    again = await client.delete(f"/api/events/{event_id}/my-registration", headers=auth_headers)
    assert again.status_code == 400
    assert again.json()["code"] == "ALREADY_CANCELLED"


@pytest.mark.asyncio
async def test_my_registration_not_found(client: AsyncClient, auth_headers, test_event):
    response = await client.get(f"/api/events/{test_event.id}/my-registration", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Registration not found"


@pytest.mark.asyncio
async def test_registration_row_is_unique_per_member(client: AsyncClient, auth_headers, db_session, test_event):
    event_id = test_event.id
    await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)
    await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)

    rows = (await db_session.execute(select(EventRegistration).where(EventRegistration.event_id == event_id))).all()
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_form_edit_keeps_answered_fields(client: AsyncClient, auth_headers, admin_headers, test_event):
    event_id = test_event.id
    fields = await save_form(client, event_id, admin_headers)
    answers = [
        {"fieldId": fields["batch_year"], "response": "2012"},
        {"fieldId": fields["tshirt_size"], "response": "M"},
    ]
    await client.post(f"/api/events/{event_id}/register", json={**REGISTER, "formResponses": answers}, headers=auth_headers)

    response = await client.put(
        f"/api/events/{event_id}/form",
        json={"fields": [{"fieldName": "batch_year", "fieldLabel": "Graduation Year", "isRequired": True}]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    saved = response.json()["data"]["fields"]
    assert [(f["id"], f["fieldLabel"]) for f in saved] == [(fields["batch_year"], "Graduation Year")]


@pytest.mark.asyncio
async def test_form_rejects_duplicate_field_names(client: AsyncClient, admin_headers, test_event):
    field = {"fieldName": "batch_year", "fieldLabel": "Batch Year"}
    response = await client.put(
        f"/api/events/{test_event.id}/form", json={"fields": [field, field]}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_lost_duplicate_race_is_a_conflict(client: AsyncClient, auth_headers, monkeypatch, db_session, test_event):
    event_id = test_event.id
    first = await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)
    assert first.status_code == 200

    # A concurrent request that read before the first insert committed sees no registration
    async def no_registration(self, event_id, user_id):
        return None

    monkeypatch.setattr(SqlRegistrationRepository, "get_registration", no_registration)

    second = await client.post(f"/api/events/{event_id}/register", json=REGISTER, headers=auth_headers)

    assert second.status_code == 409
    assert second.json()["code"] == "ALREADY_REGISTERED"
    rows = (await db_session.execute(select(EventRegistration).where(EventRegistration.event_id == event_id))).all()
    assert len(rows) == 1
