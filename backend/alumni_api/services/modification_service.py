"""
Modification window for an existing registration.

A registration may be edited or cancelled until
`event_date - form_modification_deadline_hours`. The same check gates
cancellation, guest changes, cart changes and checkout, so every one of them
is rejected with the same reason once the window has closed.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from alumni_api.core.clock import as_utc, utcnow
from alumni_api.core.config import get_settings
from alumni_api.models.registration import RegistrationStatus


class ModificationReason(str, enum.Enum):
    ALLOWED = "MODIFICATION_ALLOWED"
    DISABLED = "MODIFICATION_DISABLED"
    DEADLINE_PASSED = "MODIFICATION_DEADLINE_PASSED"
    NOT_CONFIRMED = "REGISTRATION_NOT_CONFIRMED"


@dataclass(frozen=True)
class ModificationCheck:
    allowed: bool
    reason: ModificationReason
    message: str
    deadline: Optional[datetime]
    hours_remaining: Optional[int] = None

    def as_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "reason": self.reason.value,
            "message": self.message,
            "deadline": self.deadline,
            "hours_remaining": self.hours_remaining,
        }


def modification_deadline(event) -> datetime:
    hours = event.form_modification_deadline_hours
    if hours is None:
        hours = get_settings().DEFAULT_MODIFICATION_DEADLINE_HOURS
    return as_utc(event.event_date) - timedelta(hours=hours)


def can_modify_registration(event, registration, now: Optional[datetime] = None) -> ModificationCheck:
    now = as_utc(now) if now else utcnow()
    deadline = modification_deadline(event)

    if not event.allow_form_modification:
        return ModificationCheck(
            False,
            ModificationReason.DISABLED,
            "Registration modification is not allowed for this event",
            deadline,
        )

    if now > deadline:
        hours = int((as_utc(event.event_date) - deadline).total_seconds() // 3600)
        return ModificationCheck(
            False,
            ModificationReason.DEADLINE_PASSED,
            f"Modification deadline has passed ({hours} hours before event)",
            deadline,
        )

    if registration.status != RegistrationStatus.CONFIRMED.value:
        return ModificationCheck(
            False,
            ModificationReason.NOT_CONFIRMED,
            "Only confirmed registrations can be modified",
            deadline,
        )

    return ModificationCheck(
        True,
        ModificationReason.ALLOWED,
        "Modification allowed",
        deadline,
        hours_remaining=int((deadline - now).total_seconds() // 3600),
    )
