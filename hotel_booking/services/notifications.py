"""
Best-effort "reservation created" notifications.

After a booking commits, the engine reports it to the notification
collaborator (which looks up guest contact details and sends the
confirmation with a payment link). Delivery runs on a small background pool
and every failure is logged and counted here; nothing in this module can
fail or roll back a booking.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import requests
import structlog

from hotel_booking.config import NOTIFY_TIMEOUT_SECONDS, NOTIFY_WEBHOOK_URL, PAYMENT_PORTAL_URL
from hotel_booking.metrics import notifications_sent
from hotel_booking.schemas.reservations import ReservationRecord

logger = structlog.get_logger(__name__)

MAX_NOTIFICATION_WORKERS = 2

_executor = ThreadPoolExecutor(
    max_workers=MAX_NOTIFICATION_WORKERS, thread_name_prefix="booking-notify"
)


def payment_link(reservation_id: int) -> str:
    return f"{PAYMENT_PORTAL_URL}/{reservation_id}"


def build_reservation_created_payload(record: ReservationRecord) -> dict[str, Any]:
    """
    Build the JSON body sent to the notification webhook.

    Args:
        record: The committed reservation

    Returns:
        dict: Event payload
    """
    return {
        "event": "reservation.created",
        "reservation_id": record.id,
        "guest_id": record.guest_id,
        "room_id": record.room_id,
        "check_in_date": record.check_in_date.isoformat(),
        "check_out_date": record.check_out_date.isoformat(),
        "nights": record.nights,
        "total_amount": str(record.total_amount),
        "payment_status": record.payment_status.value,
        "payment_link": payment_link(record.id),
    }


def send_reservation_created(record: ReservationRecord) -> bool:
    """
    POST a reservation.created event to the notification webhook.

    Args:
        record: The committed reservation

    Returns:
        bool: True if the webhook accepted the event, False if skipped or failed
    """
    if not NOTIFY_WEBHOOK_URL:
        notifications_sent.labels(status="skipped").inc()
        logger.debug("reservation_notification_skipped", reservation_id=record.id)
        return False

    try:
        res = requests.post(
            NOTIFY_WEBHOOK_URL,
            json=build_reservation_created_payload(record),
            timeout=NOTIFY_TIMEOUT_SECONDS,
        )
        res.raise_for_status()
    except requests.RequestException as e:
        notifications_sent.labels(status="failed").inc()
        logger.warning(
            "reservation_notification_failed", reservation_id=record.id, error=str(e)
        )
        return False
    except Exception as e:
        notifications_sent.labels(status="failed").inc()
        logger.exception(
            "reservation_notification_error", reservation_id=record.id, error=str(e)
        )
        return False

    notifications_sent.labels(status="sent").inc()
    logger.info("reservation_notification_sent", reservation_id=record.id)
    return True


def dispatch_reservation_created(record: ReservationRecord) -> Future[bool]:
    """
    Queue a reservation.created notification without waiting for delivery.

    Args:
        record: The committed reservation

    Returns:
        Future[bool]: Resolves to the result of send_reservation_created
    """
    return _executor.submit(send_reservation_created, record)
