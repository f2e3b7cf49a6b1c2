"""Stay pricing: nights between two dates times the room's nightly rate."""

from __future__ import annotations

import math
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple, Union

from hotel_booking.errors import InvalidDateRangeError

CENTS = Decimal("0.01")
SECONDS_PER_DAY = 24 * 60 * 60

Rate = Union[Decimal, int, float, str]


class PriceQuote(NamedTuple):
    nights: int
    total: Decimal


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def count_nights(check_in: date, check_out: date) -> int:
    """
    Number of nights between two dates, rounding partial days up.

    Plain dates give whole days. Datetimes are compared exactly, so a stay from
    noon to the next morning still counts as one night.
    """
    if type(check_in) is date and type(check_out) is date:
        return (check_out - check_in).days
    elapsed = _as_datetime(check_out) - _as_datetime(check_in)
    return math.ceil(elapsed.total_seconds() / SECONDS_PER_DAY)


def calculate_price(nightly_rate: Rate, check_in: date, check_out: date) -> PriceQuote:
    """
    Price a stay.

    The nightly rate is the room category's base rate plus the room's price
    adjustment, resolved by the caller. The total is rounded half-up to cents.

    Args:
        nightly_rate: Rate per night
        check_in: Check-in date (inclusive)
        check_out: Check-out date (exclusive)

    Returns:
        PriceQuote: (nights, total)

    Raises:
        InvalidDateRangeError: If check-out is not after check-in

    Example:
        >>> calculate_price(Decimal("100"), date(2024, 3, 1), date(2024, 3, 5))
        PriceQuote(nights=4, total=Decimal('400.00'))
    """
    nights = count_nights(check_in, check_out)
    if nights <= 0:
        raise InvalidDateRangeError(
            f"Check-out date ({check_out}) must be after check-in date ({check_in})"
        )

    rate = nightly_rate if isinstance(nightly_rate, Decimal) else Decimal(str(nightly_rate))
    total = (rate * nights).quantize(CENTS, rounding=ROUND_HALF_UP)
    return PriceQuote(nights=nights, total=total)
