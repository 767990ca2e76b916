"""
Registration eligibility.

The registration-window state is never stored. It is derived on every read
from the event's schedule, capacity and the current confirmed-registration
count. Precedence (first match wins) is part of the user-visible contract:

    1. external link configured   -> EXTERNAL
    2. registration disabled      -> CLOSED
    3. event date passed          -> CLOSED
    4. before registration start  -> NOT_STARTED
    5. after registration end     -> CLOSED
    6. capacity reached           -> FULL
    7. otherwise                  -> OPEN

so a full event that also has an external link reports EXTERNAL.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from alumni_api.core.clock import as_utc, utcnow


class RegistrationState(str, enum.Enum):
    EXTERNAL = "EXTERNAL"
    CLOSED = "CLOSED"
    NOT_STARTED = "NOT_STARTED"
    FULL = "FULL"
    OPEN = "OPEN"


@dataclass(frozen=True)
class EligibilityResult:
    state: RegistrationState
    message: str

    @property
    def can_register(self) -> bool:
        return self.state == RegistrationState.OPEN


def check_registration_status(
    event,
    confirmed_count: int,
    now: Optional[datetime] = None,
) -> EligibilityResult:
    """
    Derive the registration state for `event`.

    `event` is anything exposing the Event columns used below (an ORM row in
    the service, a plain object in tests).
    """
    now = as_utc(now) if now else utcnow()

    if event.has_external_link:
        return EligibilityResult(RegistrationState.EXTERNAL, "Registration available via external link")

    if not event.has_registration:
        return EligibilityResult(RegistrationState.CLOSED, "Registration not available")

    if as_utc(event.event_date) < now:
        return EligibilityResult(RegistrationState.CLOSED, "Event has already passed")

    start = as_utc(event.registration_start_date)
    if start and now < start:
        return EligibilityResult(
            RegistrationState.NOT_STARTED,
            f"Registration opens on {start.date().isoformat()}",
        )

    end = as_utc(event.registration_end_date)
    if end and now > end:
        return EligibilityResult(RegistrationState.CLOSED, "Registration period has ended")

    if event.max_capacity and confirmed_count >= event.max_capacity:
        return EligibilityResult(
            RegistrationState.FULL,
            f"Event is full: all {event.max_capacity} places are taken",
        )

    return EligibilityResult(RegistrationState.OPEN, "Registration is open")
