"""
Prometheus metrics for booking operations, room occupancy and notifications.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from hotel_booking.metrics import booking_operations, booking_duration
    >>> with booking_duration.labels(operation="create").time():
    ...     record = create_reservation(engine, payload)
    ...     booking_operations.labels(operation="create", outcome="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Booking Operation Metrics
# =============================================================================

booking_operations = Counter(
    "hotel_booking_operations_total",
    "Total booking operations by outcome",
    ["operation", "outcome"],
)
"""
Counter for orchestrated booking operations.

Labels:
    operation: create, modify, cancel, check_in, check_out, no_show, payment_status
    outcome: success, or the error class name (e.g. RoomUnavailableError)
"""

booking_duration = Histogram(
    "hotel_booking_operation_duration_seconds",
    "Duration of booking transactions in seconds",
    ["operation"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf")),
)
"""
Histogram for booking transaction duration, lock waits included.

Labels:
    operation: Booking operation name
"""

booking_conflicts = Counter(
    "hotel_booking_conflicts_total",
    "Date-range conflicts that rejected a booking",
    ["source"],
)
"""
Counter for rejected bookings due to overlap.

Labels:
    source: detector (application check) or constraint (store exclusion constraint)
"""

# =============================================================================
# Room Metrics
# =============================================================================

room_status_changes = Counter(
    "hotel_room_status_changes_total",
    "Room occupancy status changes applied by the synchronizer",
    ["status"],
)
"""
Counter for room status writes.

Labels:
    status: New room status (available, occupied, ...)
"""

# =============================================================================
# Notification Metrics
# =============================================================================

notifications_sent = Counter(
    "hotel_booking_notifications_total",
    "Best-effort reservation notifications",
    ["status"],
)
"""
Counter for outbound reservation notifications.

Labels:
    status: sent, failed or skipped
"""
