"""
Tests for event endpoints including caching behavior.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from alumni_api.core.clock import utcnow
from alumni_api.services.cache_invalidation import CacheKeys


def event_payload(**overrides) -> dict:
    payload = {
        "title": "Annual Alumni Meet",
        "description": "Catch up with your batch",
        "venue": "Convocation Hall",
        "eventDate": (utcnow() + timedelta(days=30)).isoformat(),
        "status": "PUBLISHED",
        "registrationFee": 500,
        "maxCapacity": 100,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_list_events_empty(client: AsyncClient):
    response = await client.get("/api/events")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["events"] == []
    assert data["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_list_events_hides_drafts(client: AsyncClient, make_event):
    await make_event(title="Visible", slug="visible")
    await make_event(title="Hidden", slug="hidden", status="DRAFT")

    response = await client.get("/api/events")
    titles = [e["title"] for e in response.json()["data"]["events"]]
    assert titles == ["Visible"]


@pytest.mark.asyncio
async def test_list_events_cached_then_evicted(client: AsyncClient, cache, admin_headers, test_event):
    first = await client.get("/api/events")
    assert first.json()["data"]["cached"] is False
    assert CacheKeys.event_list(1, 20, False, None) in cache.store

    second = await client.get("/api/events")
    assert second.json()["data"]["cached"] is True

    await client.post("/api/events", json=event_payload(), headers=admin_headers)
    assert CacheKeys.event_list(1, 20, False, None) not in cache.store

    third = await client.get("/api/events")
    assert third.json()["data"]["cached"] is False
    assert third.json()["data"]["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, test_event):
    event_id = test_event.id
    response = await client.get(f"/api/events/{event_id}")
    assert response.status_code == 200
    assert response.json()["data"]["slug"] == test_event.slug


@pytest.mark.asyncio
async def test_get_draft_event_is_not_found(client: AsyncClient, make_event):
    draft = await make_event(status="DRAFT")
    response = await client.get(f"/api/events/{draft.id}")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Event not found", "code": "NOT_FOUND"}


@pytest.mark.asyncio
async def test_create_event_requires_admin(client: AsyncClient, auth_headers):
    response = await client.post("/api/events", json=event_payload(), headers=auth_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, admin_headers):
    response = await client.post("/api/events", json=event_payload(), headers=admin_headers)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["slug"] == "annual-alumni-meet"
    assert data["registrationFee"] == 500
    assert data["status"] == "PUBLISHED"


@pytest.mark.asyncio
async def test_duplicate_titles_get_suffixed_slugs(client: AsyncClient, admin_headers):
    slugs = []
    for _ in range(3):
        response = await client.post("/api/events", json=event_payload(), headers=admin_headers)
        slugs.append(response.json()["data"]["slug"])
    assert slugs == ["annual-alumni-meet", "annual-alumni-meet-1", "annual-alumni-meet-2"]


@pytest.mark.asyncio
async def test_create_event_in_past_rejected(client: AsyncClient, admin_headers):
    payload = event_payload(eventDate=(utcnow() - timedelta(days=1)).isoformat())
    response = await client.post("/api/events", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_EVENT_DATE"


@pytest.mark.asyncio
async def test_create_event_with_bad_times_rejected(client: AsyncClient, admin_headers):
    payload = event_payload(startTime="18:00", endTime="17:00")
    response = await client.post("/api/events", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_update_event_regenerates_slug(client: AsyncClient, admin_headers, cache, test_event):
    event_id = test_event.id
    await client.get(f"/api/events/{event_id}")
    assert CacheKeys.event(event_id) in cache.store

    response = await client.put(
        f"/api/events/{event_id}", json={"title": "Silver Jubilee Dinner"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["slug"] == "silver-jubilee-dinner"
    assert CacheKeys.event(event_id) not in cache.store


@pytest.mark.asyncio
async def test_update_rejects_registration_end_after_event(client: AsyncClient, admin_headers, test_event):
    end = (test_event.event_date + timedelta(days=1)).isoformat()
    response = await client.put(
        f"/api/events/{test_event.id}", json={"registrationEndDate": end}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_SCHEDULE"


@pytest.mark.asyncio
async def test_change_status(client: AsyncClient, admin_headers, test_event):
    response = await client.patch(
        f"/api/events/{test_event.id}/status", json={"status": "REGISTRATION_CLOSED"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "REGISTRATION_CLOSED"


@pytest.mark.asyncio
async def test_delete_event_without_registrations(client: AsyncClient, admin_headers, test_event):
    event_id = test_event.id
    response = await client.delete(f"/api/events/{event_id}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/events/{event_id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_event_with_registrations_blocked(
    client: AsyncClient, admin_headers, auth_headers, test_event
):
    event_id = test_event.id
    await client.post(f"/api/events/{event_id}/register", json={"agreeToTerms": True}, headers=auth_headers)

    response = await client.delete(f"/api/events/{event_id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "EVENT_HAS_REGISTRATIONS"


@pytest.mark.asyncio
async def test_registration_status_open(client: AsyncClient, test_event):
    response = await client.get(f"/api/events/{test_event.id}/registration-status")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "OPEN"
    assert data["canRegister"] is True
    assert data["confirmedRegistrations"] == 0


@pytest.mark.asyncio
async def test_registration_status_external(client: AsyncClient, make_event):
    event = await make_event(
        has_external_link=True,
        external_registration_link="https://tickets.alumni.org/meet",
        max_capacity=1,
    )
    response = await client.get(f"/api/events/{event.id}/registration-status")
    data = response.json()["data"]
    assert data["status"] == "EXTERNAL"
    assert data["externalRegistrationLink"] == "https://tickets.alumni.org/meet"


@pytest.mark.asyncio
async def test_registration_status_not_started(client: AsyncClient, make_event):
    event = await make_event(registration_start_date=utcnow() + timedelta(days=3))
    response = await client.get(f"/api/events/{event.id}/registration-status")
    assert response.json()["data"]["status"] == "NOT_STARTED"


@pytest.mark.asyncio
async def test_admin_listing_includes_drafts(client: AsyncClient, admin_headers, make_event):
    await make_event(title="Draft Meet", slug="draft-meet", status="DRAFT")
    response = await client.get("/api/admin/events", headers=admin_headers)
    assert response.status_code == 200
    assert [e["title"] for e in response.json()["data"]["events"]] == ["Draft Meet"]


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(client: AsyncClient):
    response = await client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json()["success"] is False
