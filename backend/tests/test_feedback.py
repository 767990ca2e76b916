"""
Tests for post-event feedback: form window, submissions and analytics.
"""

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import select

from alumni_api.core.clock import utcnow
from alumni_api.models.activity_log import ActivityLog
from alumni_api.models.feedback import EventFeedbackResponse
from alumni_api.services.cache_invalidation import CacheKeys
from alumni_api.services.feedback_service import rating_summary

FIELDS = [
    {"fieldName": "overall", "fieldLabel": "Overall rating", "fieldType": "RATING", "isRequired": True},
    {"fieldName": "venue", "fieldLabel": "Venue", "fieldType": "SELECT", "options": ["Great", "Okay", "Poor"]},
    {"fieldName": "comments", "fieldLabel": "Comments", "fieldType": "TEXTAREA"},
]


async def _save_form(client: AsyncClient, event_id: int, headers: dict, **overrides):
    payload = {"fields": FIELDS}
    payload.update(overrides)
    return await client.put(f"/api/events/{event_id}/feedback/form", json=payload, headers=headers)


@pytest_asyncio.fixture
async def past_event(make_event):
    return await make_event(event_date=utcnow() - timedelta(hours=3), status="COMPLETED")


@pytest_asyncio.fixture
async def feedback_form(client: AsyncClient, admin_headers, past_event) -> dict:
    response = await _save_form(client, past_event.id, admin_headers)
    assert response.status_code == 200, response.text
    form = response.json()["data"]
    form["ids"] = {field["fieldName"]: field["id"] for field in form["fields"]}
    return form


def _answers(form: dict, **values) -> dict:
    return {str(form["ids"][name]): value for name, value in values.items()}


@pytest.mark.asyncio
async def test_admin_creates_form_with_defaults(client: AsyncClient, admin_headers, past_event, db_session):
    response = await _save_form(client, past_event.id, admin_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Feedback form created successfully"
    form = response.json()["data"]
    assert form["title"] == "Event Feedback"
    assert form["allowAnonymous"] is True
    assert form["closeAfterHours"] == 168
    assert form["completionMessage"] == "Thank you for your feedback!"
    rating = form["fields"][0]
    assert (rating["minValue"], rating["maxValue"]) == (1, 5)

    again = await _save_form(client, past_event.id, admin_headers, title="How was it?")
    assert again.json()["message"] == "Feedback form updated successfully"
    actions = (await db_session.execute(select(ActivityLog.action))).scalars().all()
    assert {"feedback_form_create", "feedback_form_update"} <= set(actions)


@pytest.mark.asyncio
async def test_form_hidden_from_members_before_the_event(
    client: AsyncClient, admin_headers, auth_headers, test_event
):
    await _save_form(client, test_event.id, admin_headers)

    member = await client.get(f"/api/events/{test_event.id}/feedback/form", headers=auth_headers)
    assert member.status_code == 403
    assert member.json()["message"] == "Feedback form not available yet"

    admin = await client.get(f"/api/events/{test_event.id}/feedback/form", headers=admin_headers)
    assert admin.status_code == 200


@pytest.mark.asyncio
async def test_form_closes_after_window(client: AsyncClient, admin_headers, auth_headers, make_event):
    event = await make_event(event_date=utcnow() - timedelta(hours=30), status="COMPLETED")
    await _save_form(client, event.id, admin_headers, closeAfterHours=24)

    response = await client.get(f"/api/events/{event.id}/feedback/form", headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["code"] == "FEEDBACK_CLOSED"


@pytest.mark.asyncio
async def test_submit_identified_feedback_once(
    client: AsyncClient, auth_headers, past_event, feedback_form, db_session
):
    url = f"/api/events/{past_event.id}/feedback"
    body = {"responses": _answers(feedback_form, overall=5, venue="Great", comments="  Loved it ")}

    response = await client.post(url, json=body, headers=auth_headers)
    assert response.status_code == 200, response.text
    receipt = response.json()["data"]
    assert receipt["completionMessage"] == "Thank you for your feedback!"
    assert receipt["responsesSubmitted"] == 3

    again = await client.post(url, json=body, headers=auth_headers)
    assert again.status_code == 400
    assert again.json()["message"] == "You have already submitted feedback for this event"

    mine = await client.get(f"{url}/my-response", headers=auth_headers)
    answers = {a["fieldLabel"]: a["response"] for a in mine.json()["data"]}
    assert answers == {"Overall rating": "5", "Venue": "Great", "Comments": "Loved it"}

    actions = (await db_session.execute(select(ActivityLog.action))).scalars().all()
    assert actions.count("feedback_submit") == 1


@pytest.mark.asyncio
async def test_anonymous_feedback_is_not_linked(
    client: AsyncClient, auth_headers, past_event, feedback_form, db_session
):
    url = f"/api/events/{past_event.id}/feedback"
    body = {"responses": _answers(feedback_form, overall=3), "isAnonymous": True}

    response = await client.post(url, json=body, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["isAnonymous"] is True

    rows = (await db_session.execute(select(EventFeedbackResponse))).scalars().all()
    assert [(r.user_id, r.is_anonymous) for r in rows] == [(None, True)]
    mine = await client.get(f"{url}/my-response", headers=auth_headers)
    assert mine.json()["data"] == []
    actions = (await db_session.execute(select(ActivityLog.action))).scalars().all()
    assert "feedback_submit" not in actions


@pytest.mark.asyncio
async def test_anonymous_feedback_can_be_disabled(client: AsyncClient, admin_headers, auth_headers, past_event):
    form = (await _save_form(client, past_event.id, admin_headers, allowAnonymous=False)).json()["data"]
    rating_id = form["fields"][0]["id"]

    response = await client.post(
        f"/api/events/{past_event.id}/feedback",
        json={"responses": {str(rating_id): 4}, "isAnonymous": True},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "ANONYMOUS_NOT_ALLOWED"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "values, message",
    [
        ({"venue": "Great"}, "Overall rating is required"),
        ({"overall": "  "}, "Overall rating is required"),
        ({"overall": 7}, "Overall rating: Rating must be between 1 and 5"),
        ({"overall": "five"}, "Overall rating: Rating must be a number"),
        ({"overall": 4, "venue": "Terrible"}, "Venue: Invalid option selected"),
    ],
)
async def test_invalid_answers_rejected(
    client: AsyncClient, auth_headers, past_event, feedback_form, values, message
):
    response = await client.post(
        f"/api/events/{past_event.id}/feedback",
        json={"responses": _answers(feedback_form, **values)},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_FEEDBACK"
    assert response.json()["message"] == message


@pytest.mark.asyncio
async def test_unknown_field_rejected(client: AsyncClient, auth_headers, past_event, feedback_form):
    response = await client.post(
        f"/api/events/{past_event.id}/feedback",
        json={"responses": {"99999": "x", **_answers(feedback_form, overall=4)}},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_FEEDBACK_FIELD"


@pytest.mark.asyncio
async def test_fields_locked_once_feedback_exists(
    client: AsyncClient, admin_headers, auth_headers, past_event, feedback_form
):
    await client.post(
        f"/api/events/{past_event.id}/feedback",
        json={"responses": _answers(feedback_form, overall=4)},
        headers=auth_headers,
    )

    locked = await _save_form(client, past_event.id, admin_headers)
    assert locked.status_code == 400
    assert locked.json()["message"] == "Cannot modify form with existing responses"

    settings_only = await client.put(
        f"/api/events/{past_event.id}/feedback/form",
        json={"completionMessage": "Thanks, see you next year!"},
        headers=admin_headers,
    )
    assert settings_only.status_code == 200
    assert len(settings_only.json()["data"]["fields"]) == 3


@pytest.mark.asyncio
async def test_admin_lists_responses(
    client: AsyncClient, admin_headers, auth_headers, other_headers, past_event, feedback_form
):
    url = f"/api/events/{past_event.id}/feedback"
    await client.post(url, json={"responses": _answers(feedback_form, overall=4)}, headers=auth_headers)
    await client.post(
        url, json={"responses": _answers(feedback_form, overall=2), "isAnonymous": True}, headers=other_headers
    )

    everything = await client.get(f"{url}/responses", headers=admin_headers)
    assert everything.json()["data"]["pagination"]["total"] == 2

    identified = await client.get(f"{url}/responses", params={"includeAnonymous": "false"}, headers=admin_headers)
    rows = identified.json()["data"]["responses"]
    assert [(r["userName"], r["response"]) for r in rows] == [("Test Member", "4")]

    assert (await client.get(f"{url}/responses", headers=auth_headers)).status_code == 403


@pytest.mark.asyncio
async def test_analytics_cached_until_next_submission(
    client: AsyncClient, cache, admin_headers, auth_headers, other_headers, past_event, feedback_form
):
    url = f"/api/events/{past_event.id}/feedback"
    await client.post(url, json={"responses": _answers(feedback_form, overall=4)}, headers=auth_headers)

    first = (await client.get(f"{url}/analytics", headers=admin_headers)).json()["data"]
    assert first["totalResponses"] == 1
    assert first["averageRating"] == 4.0
    assert CacheKeys.feedback_analytics(past_event.id) in cache.store

    await client.post(
        url, json={"responses": _answers(feedback_form, overall=5), "isAnonymous": True}, headers=other_headers
    )
    assert CacheKeys.feedback_analytics(past_event.id) not in cache.store

    second = (await client.get(f"{url}/analytics", headers=admin_headers)).json()["data"]
    assert (second["totalResponses"], second["anonymousResponses"], second["identifiedResponses"]) == (2, 1, 1)
    assert second["averageRating"] == 4.5
    assert second["ratingDistribution"] == {
        "4": {"count": 1, "percentage": 50},
        "5": {"count": 1, "percentage": 50},
    }


def test_rating_summary_rounds_half_up():
    average, distribution = rating_summary([4.5, 3.0, 5.0])
    assert average == 4.17
    assert distribution == {"3": {"count": 1, "percentage": 33}, "5": {"count": 2, "percentage": 67}}
    assert rating_summary([]) == (None, {})
