r"""
Booking state machine.

    pending -> confirmed -> completed
        \          \
         `-> cancelled <-'

Actors are resolved per booking: the hirer who created it, or the worker
whose profile it was made against. Anybody else is not a party and never
reaches this table (they cannot see the booking at all).
"""

import enum
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ...models import Booking, BookingStatus, Profile


class Party(str, enum.Enum):
    HIRER = "hirer"
    WORKER = "worker"


TERMINAL_STATES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})

# (from, to) -> parties allowed to make the move
TRANSITIONS: dict[tuple[BookingStatus, BookingStatus], frozenset[Party]] = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED): frozenset({Party.WORKER}),
    # worker rejects, hirer withdraws
    (BookingStatus.PENDING, BookingStatus.CANCELLED): frozenset({Party.WORKER, Party.HIRER}),
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED): frozenset({Party.WORKER}),
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED): frozenset({Party.WORKER, Party.HIRER}),
}

HOURS_PER_DAY = Decimal("8")
CENTS = Decimal("0.01")


def party_of(booking: Booking, principal: Profile) -> Optional[Party]:
    if booking.hirer_id == principal.id:
        return Party.HIRER
    if booking.worker is not None and booking.worker.user_id == principal.id:
        return Party.WORKER
    return None


def is_allowed(current: BookingStatus, target: BookingStatus, party: Optional[Party]) -> bool:
    if party is None:
        return False
    return party in TRANSITIONS.get((current, target), frozenset())


def allowed_targets(current: BookingStatus, party: Optional[Party]) -> list[BookingStatus]:
    """Statuses `party` could move a booking to from `current`"""
    return [
        target
        for (source, target), parties in TRANSITIONS.items()
        if source == current and party in parties
    ]


def compute_agreed_rate(
    hourly_rate: Decimal, daily_rate: Optional[Decimal], duration_hours: Optional[Decimal]
) -> Decimal:
    """
    Price fixed at booking time: hours x hourly rate when a duration is
    given, otherwise the daily rate, otherwise a standard 8 hour day.
    """
    hourly_rate = Decimal(str(hourly_rate))
    if duration_hours:
        amount = Decimal(str(duration_hours)) * hourly_rate
    elif daily_rate:
        amount = Decimal(str(daily_rate))
    else:
        amount = hourly_rate * HOURS_PER_DAY
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
