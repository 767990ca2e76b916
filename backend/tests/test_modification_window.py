"""
Tests for the modification window shared by edits, cancellation, guests and the cart.
"""

from datetime import timedelta
from types import SimpleNamespace

from alumni_api.core.clock import utcnow
from alumni_api.services.modification_service import (
    ModificationReason,
    can_modify_registration,
    modification_deadline,
)

from tests.fakes import make_event_stub


def confirmed():
    return SimpleNamespace(status="CONFIRMED")


def test_allowed_well_before_deadline():
    event = make_event_stub(event_date=utcnow() + timedelta(days=10))
    check = can_modify_registration(event, confirmed())
    assert check.allowed
    assert check.reason == ModificationReason.ALLOWED
    assert check.hours_remaining is not None and check.hours_remaining > 24 * 8


def test_deadline_is_event_date_minus_hours():
    event_date = utcnow() + timedelta(days=3)
    event = make_event_stub(event_date=event_date, form_modification_deadline_hours=48)
    assert modification_deadline(event) == event_date - timedelta(hours=48)


def test_missing_hours_fall_back_to_default():
    event_date = utcnow() + timedelta(days=3)
    event = make_event_stub(event_date=event_date, form_modification_deadline_hours=None)
    assert modification_deadline(event) == event_date - timedelta(hours=24)


def test_disabled_modification():
    event = make_event_stub(allow_form_modification=False)
    check = can_modify_registration(event, confirmed())
    assert not check.allowed
    assert check.reason == ModificationReason.DISABLED


def test_deadline_passed():
    event = make_event_stub(event_date=utcnow() + timedelta(hours=2), form_modification_deadline_hours=24)
    check = can_modify_registration(event, confirmed())
    assert not check.allowed
    assert check.reason == ModificationReason.DEADLINE_PASSED
    assert "24 hours before event" in check.message


def test_cancelled_registration_cannot_be_modified():
    check = can_modify_registration(make_event_stub(), SimpleNamespace(status="CANCELLED"))
    assert not check.allowed
    assert check.reason == ModificationReason.NOT_CONFIRMED


def test_disabled_is_reported_before_deadline():
    event = make_event_stub(allow_form_modification=False, event_date=utcnow() + timedelta(hours=1))
    assert can_modify_registration(event, confirmed()).reason == ModificationReason.DISABLED


def test_as_dict_exposes_reason_value():
    check = can_modify_registration(make_event_stub(), confirmed())
    data = check.as_dict()
    assert data["allowed"] is True
    assert data["reason"] == "MODIFICATION_ALLOWED"
    assert data["deadline"] == check.deadline
