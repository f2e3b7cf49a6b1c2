"""Date and UTC datetime utilities."""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Use this instead of datetime.now() or datetime.utcnow() so that every
    stored timestamp is timezone-aware and in UTC.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def today() -> date:
    """Return the current property-local calendar date."""
    return date.today()
