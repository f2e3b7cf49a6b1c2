"""Unit tests for best-effort reservation notifications."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests

from hotel_booking.models.reservations import PaymentStatus, ReservationStatus
from hotel_booking.schemas.reservations import ReservationRecord
from hotel_booking.services.notifications import (
    build_reservation_created_payload,
    dispatch_reservation_created,
    send_reservation_created,
)

WEBHOOK_URL = "http://notify.test/reservations"


@pytest.fixture
def record() -> ReservationRecord:
    return ReservationRecord(
        id=42,
        room_id=7,
        guest_id=1001,
        check_in_date=date(2025, 6, 10),
        check_out_date=date(2025, 6, 13),
        number_of_guests=2,
        total_amount=Decimal("300.00"),
        status=ReservationStatus.CONFIRMED,
        payment_status=PaymentStatus.PENDING,
    )


@pytest.mark.unit
def test_payload_contains_stay_summary_and_payment_link(record: ReservationRecord) -> None:
    with patch(
        "hotel_booking.services.notifications.PAYMENT_PORTAL_URL", "https://pay.example.com"
    ):
        payload = build_reservation_created_payload(record)

    assert payload["event"] == "reservation.created"
    assert payload["reservation_id"] == 42
    assert payload["guest_id"] == 1001
    assert payload["check_in_date"] == "2025-06-10"
    assert payload["nights"] == 3
    assert payload["total_amount"] == "300.00"
    assert payload["payment_status"] == "pending"
    assert payload["payment_link"] == "https://pay.example.com/42"


@pytest.mark.unit
@patch("hotel_booking.services.notifications.requests.post")
def test_send_skipped_without_webhook_url(mock_post: Mock, record: ReservationRecord) -> None:
    with patch("hotel_booking.services.notifications.NOTIFY_WEBHOOK_URL", ""):
        assert send_reservation_created(record) is False

    mock_post.assert_not_called()


@pytest.mark.unit
@patch("hotel_booking.services.notifications.NOTIFY_WEBHOOK_URL", WEBHOOK_URL)
@patch("hotel_booking.services.notifications.requests.post")
def test_send_posts_payload(mock_post: Mock, record: ReservationRecord) -> None:
    mock_post.return_value = Mock(status_code=202)

    assert send_reservation_created(record) is True

    mock_post.assert_called_once()
    assert mock_post.call_args.args[0] == WEBHOOK_URL
    assert mock_post.call_args.kwargs["json"]["reservation_id"] == 42
    assert "timeout" in mock_post.call_args.kwargs


@pytest.mark.unit
@patch("hotel_booking.services.notifications.NOTIFY_WEBHOOK_URL", WEBHOOK_URL)
@patch("hotel_booking.services.notifications.requests.post")
def test_send_swallows_http_errors(mock_post: Mock, record: ReservationRecord) -> None:
    mock_response = Mock(status_code=500)
    mock_response.raise_for_status.side_effect = requests.HTTPError(response=mock_response)
    mock_post.return_value = mock_response

    assert send_reservation_created(record) is False


@pytest.mark.unit
@patch("hotel_booking.services.notifications.NOTIFY_WEBHOOK_URL", WEBHOOK_URL)
@patch("hotel_booking.services.notifications.requests.post")
def test_send_swallows_connection_errors(mock_post: Mock, record: ReservationRecord) -> None:
    mock_post.side_effect = requests.ConnectionError("connection refused")

    assert send_reservation_created(record) is False


@pytest.mark.unit
@patch("hotel_booking.services.notifications.NOTIFY_WEBHOOK_URL", WEBHOOK_URL)
@patch("hotel_booking.services.notifications.requests.post")
def test_dispatch_runs_in_background(mock_post: Mock, record: ReservationRecord) -> None:
    mock_post.return_value = Mock(status_code=200)

    future = dispatch_reservation_created(record)

    assert future.result(timeout=5) is True
    mock_post.assert_called_once()
