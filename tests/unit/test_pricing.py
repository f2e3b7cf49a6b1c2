"""
Unit tests for stay pricing.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from hotel_booking.errors import InvalidDateRangeError
from hotel_booking.services.pricing import PriceQuote, calculate_price, count_nights


@pytest.mark.unit
def test_four_nights_at_flat_rate() -> None:
    quote = calculate_price(Decimal("100.00"), date(2024, 3, 1), date(2024, 3, 5))

    assert quote == PriceQuote(nights=4, total=Decimal("400.00"))


@pytest.mark.unit
def test_single_night() -> None:
    quote = calculate_price(Decimal("89.50"), date(2024, 3, 1), date(2024, 3, 2))

    assert quote.nights == 1
    assert quote.total == Decimal("89.50")


@pytest.mark.unit
def test_stay_across_month_and_leap_day() -> None:
    quote = calculate_price(Decimal("75"), date(2024, 2, 27), date(2024, 3, 2))

    assert quote.nights == 4
    assert quote.total == Decimal("300.00")


@pytest.mark.unit
def test_total_rounds_half_up_to_cents() -> None:
    quote = calculate_price(Decimal("33.335"), date(2024, 3, 1), date(2024, 3, 2))

    assert quote.total == Decimal("33.34")


@pytest.mark.unit
@pytest.mark.parametrize("rate", [150, 150.0, "150"])
def test_non_decimal_rates_are_accepted(rate: object) -> None:
    quote = calculate_price(rate, date(2024, 3, 1), date(2024, 3, 3))  # type: ignore[arg-type]

    assert quote.total == Decimal("300.00")


@pytest.mark.unit
@pytest.mark.parametrize(
    "check_in, check_out",
    [
        (date(2024, 3, 5), date(2024, 3, 5)),
        (date(2024, 3, 5), date(2024, 3, 1)),
    ],
)
def test_empty_or_reversed_range_is_rejected(check_in: date, check_out: date) -> None:
    with pytest.raises(InvalidDateRangeError):
        calculate_price(Decimal("100"), check_in, check_out)


@pytest.mark.unit
def test_partial_day_datetimes_round_up() -> None:
    nights = count_nights(datetime(2024, 3, 1, 15, 0), datetime(2024, 3, 2, 11, 0))

    assert nights == 1


@pytest.mark.unit
def test_datetimes_spanning_more_than_a_day_round_up() -> None:
    nights = count_nights(datetime(2024, 3, 1, 10, 0), datetime(2024, 3, 3, 11, 0))

    assert nights == 3


@pytest.mark.unit
def test_pricing_is_repeatable() -> None:
    first = calculate_price(Decimal("149.99"), date(2024, 3, 1), date(2024, 3, 8))
    second = calculate_price(Decimal("149.99"), date(2024, 3, 1), date(2024, 3, 8))

    assert first == second == PriceQuote(nights=7, total=Decimal("1049.93"))
