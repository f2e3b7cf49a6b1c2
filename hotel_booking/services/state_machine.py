"""
Reservation status transitions.

    confirmed  -> checked-in   (on or after the check-in date)
    confirmed  -> cancelled
    confirmed  -> no-show      (after the check-in date has passed)
    checked-in -> checked-out
    checked-in -> cancelled    (administrative override)

checked-out, cancelled and no-show are terminal. Nothing here touches the
database; the booking orchestrator applies the result.
"""

from __future__ import annotations

from datetime import date
from typing import Union

from hotel_booking.errors import IllegalTransitionError, PrematureCheckInError
from hotel_booking.models.reservations import TERMINAL_STATUSES, ReservationStatus

StatusLike = Union[ReservationStatus, str]

TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.CONFIRMED: frozenset(
        {
            ReservationStatus.CHECKED_IN,
            ReservationStatus.CANCELLED,
            ReservationStatus.NO_SHOW,
        }
    ),
    ReservationStatus.CHECKED_IN: frozenset(
        {
            ReservationStatus.CHECKED_OUT,
            ReservationStatus.CANCELLED,
        }
    ),
}


def allowed_transitions(current: StatusLike) -> frozenset[ReservationStatus]:
    return TRANSITIONS.get(ReservationStatus(current), frozenset())


def is_terminal(status: StatusLike) -> bool:
    return ReservationStatus(status) in TERMINAL_STATUSES


def transition(
    current: StatusLike,
    requested: StatusLike,
    check_in_date: date,
    today: date,
) -> ReservationStatus:
    """
    Validate a status change and return the new status.

    Args:
        current: The reservation's status now
        requested: The status the caller wants
        check_in_date: The stay's check-in date
        today: The property's current date

    Returns:
        ReservationStatus: The new status

    Raises:
        IllegalTransitionError: If the change is not allowed from current
        PrematureCheckInError: If check-in is requested before check_in_date
    """
    current = ReservationStatus(current)
    requested = ReservationStatus(requested)

    if requested not in allowed_transitions(current):
        raise IllegalTransitionError(current.value, requested.value)

    if requested is ReservationStatus.CHECKED_IN and today < check_in_date:
        raise PrematureCheckInError(
            f"Check-in is not possible before {check_in_date.isoformat()} (today is {today.isoformat()})"
        )

    if requested is ReservationStatus.NO_SHOW and today <= check_in_date:
        raise IllegalTransitionError(
            current.value,
            requested.value,
            message=f"No-show can only be recorded after the check-in date {check_in_date.isoformat()}",
        )

    return requested
