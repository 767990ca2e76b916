"""
Tests for admin registration listing, statistics, exports and the dashboard.
"""

import csv
import io

import pytest
from httpx import AsyncClient

from alumni_api.services.cache_invalidation import CacheKeys

REGISTER = {"agreeToTerms": True}


@pytest.fixture
def reunion(client: AsyncClient, make_event, make_user, admin_headers):
    """Paid event with a form and two registered members."""

    async def _make():
        event = await make_event(registration_fee=500, has_meals=True, max_capacity=4)
        event_id = event.id
        form = await client.put(
            f"/api/events/{event_id}/form",
            json={"fields": [{"fieldName": "batch_year", "fieldLabel": "Batch Year", "isRequired": True}]},
            headers=admin_headers,
        )
        field_id = form.json()["data"]["fields"][0]["id"]

        for meal, year in (("VEG", "2010"), ("NON_VEG", "2015")):
            _, headers = await make_user()
            response = await client.post(
                f"/api/events/{event_id}/register",
                json={**REGISTER, "mealPreference": meal, "formResponses": [{"fieldId": field_id, "response": year}]},
                headers=headers,
            )
            assert response.status_code == 200
        return event

    return _make


@pytest.mark.asyncio
async def test_admin_routes_require_admin(client: AsyncClient, auth_headers):
    response = await client.get("/api/admin/dashboard", headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Admin access required"


@pytest.mark.asyncio
async def test_list_registrations(client: AsyncClient, admin_headers, reunion):
    event = await reunion()
    response = await client.get(f"/api/admin/events/{event.id}/registrations", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["pagination"]["total"] == 2
    assert {row["userEmail"] for row in data["registrations"]} == {"extra1@alumni.org", "extra2@alumni.org"}
    assert all(len(row["formResponses"]) == 1 for row in data["registrations"])


@pytest.mark.asyncio
async def test_list_registrations_search(client: AsyncClient, admin_headers, reunion):
    event = await reunion()
    response = await client.get(
        f"/api/admin/events/{event.id}/registrations", params={"search": "member 2"}, headers=admin_headers
    )
    rows = response.json()["data"]["registrations"]
    assert [row["userFullName"] for row in rows] == ["Extra Member 2"]


@pytest.mark.asyncio
async def test_registration_stats(client: AsyncClient, admin_headers, cache, reunion):
    event = await reunion()
    event_id = event.id

    response = await client.get(f"/api/admin/events/{event_id}/registrations/stats", headers=admin_headers)

    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["total"] == 2
    assert stats["byStatus"] == {"CONFIRMED": 2}
    assert stats["byPaymentStatus"] == {"PENDING": 2}
    assert stats["meals"] == {"VEG": 1, "NON_VEG": 1}
    assert stats["revenue"]["total"] == 1000
    assert stats["capacityUtilization"] == 50
    assert CacheKeys.registration_stats(event_id) in cache.store


@pytest.mark.asyncio
async def test_stats_evicted_by_new_registration(client: AsyncClient, admin_headers, auth_headers, cache, reunion):
    event = await reunion()
    event_id = event.id
    await client.get(f"/api/admin/events/{event_id}/registrations/stats", headers=admin_headers)
    form = (await client.get(f"/api/events/{event_id}/form")).json()["data"]
    field_id = form["fields"][0]["id"]

    response = await client.post(
        f"/api/events/{event_id}/register",
        json={**REGISTER, "mealPreference": "VEG", "formResponses": [{"fieldId": field_id, "response": "2020"}]},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert CacheKeys.registration_stats(event_id) not in cache.store

    stats = (await client.get(f"/api/admin/events/{event_id}/registrations/stats", headers=admin_headers)).json()
    assert stats["data"]["total"] == 3


@pytest.mark.asyncio
async def test_export_csv(client: AsyncClient, admin_headers, reunion):
    event = await reunion()
    response = await client.get(
        f"/api/admin/events/{event.id}/registrations/export", params={"format": "csv"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith("attachment;")
    assert f"{event.slug}_registrations_" in disposition and disposition.endswith('.csv"')

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][:3] == ["Registration ID", "Name", "Email"]
    assert rows[0][-1] == "Batch Year"
    assert len(rows) == 3
    assert {row[-1] for row in rows[1:]} == {"2010", "2015"}


@pytest.mark.asyncio
async def test_export_xlsx(client: AsyncClient, admin_headers, reunion):
    event = await reunion()
    response = await client.get(
        f"/api/admin/events/{event.id}/registrations/export", params={"format": "xlsx"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert response.content[:2] == b"PK"  # xlsx is a zip container


@pytest.mark.asyncio
async def test_export_rejects_unknown_format(client: AsyncClient, admin_headers, test_event):
    response = await client.get(
        f"/api/admin/events/{test_event.id}/registrations/export", params={"format": "pdf"}, headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_dashboard(client: AsyncClient, admin_headers, cache, make_event, reunion):
    await reunion()
    await make_event(status="DRAFT")

    response = await client.get("/api/admin/dashboard", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalEvents"] == 2
    assert data["upcomingEvents"] == 1
    assert data["draftEvents"] == 1
    assert data["recentRegistrations"] == 2
    assert data["totalRevenue"] == 1000
    assert CacheKeys.DASHBOARD in cache.store
