"""
Fee calculation for event registrations.

The total is a plain arithmetic sum of four components:

    total = registration_fee + guest_count * guest_fee + merchandise + donation

There is no rounding or currency policy here; negative inputs are rejected by
the request schemas before they reach this module.
"""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class MerchandiseLine:
    price: float
    quantity: int

    @property
    def total(self) -> float:
        return float(self.price) * int(self.quantity)


@dataclass(frozen=True)
class FeeBreakdown:
    registration: float
    guests: float
    merchandise: float
    donation: float
    guest_count: int = 0
    guest_fee: float = 0.0

    @property
    def total(self) -> float:
        return self.registration + self.guests + self.merchandise + self.donation

    def as_dict(self) -> dict:
        return {
            "registration": self.registration,
            "guests": self.guests,
            "merchandise": self.merchandise,
            "donation": self.donation,
            "total": self.total,
        }


def calculate_fees(
    registration_fee: float = 0,
    guest_count: int = 0,
    guest_fee: float = 0,
    merchandise_lines: Iterable[MerchandiseLine] = (),
    donation_amount: float = 0,
    merchandise_total: float = 0,
) -> FeeBreakdown:
    """
    Compute the fee breakdown for a registration.

    `merchandise_total` is an amount already folded into the registration by
    earlier checkouts; it is added to the sum of `merchandise_lines`.
    """
    merchandise = float(merchandise_total or 0) + sum(line.total for line in merchandise_lines)
    return FeeBreakdown(
        registration=float(registration_fee or 0),
        guests=int(guest_count) * float(guest_fee or 0),
        merchandise=merchandise,
        donation=float(donation_amount or 0),
        guest_count=int(guest_count),
        guest_fee=float(guest_fee or 0),
    )


def fees_after_guest_removal(current: FeeBreakdown, removed: int = 1) -> FeeBreakdown:
    """
    No-refund policy: a removed guest's fee moves into the donation component,
    so the total does not decrease.
    """
    removed = min(removed, current.guest_count)
    moved = removed * current.guest_fee
    return FeeBreakdown(
        registration=current.registration,
        guests=current.guests - moved,
        merchandise=current.merchandise,
        donation=current.donation + moved,
        guest_count=current.guest_count - removed,
        guest_fee=current.guest_fee,
    )
