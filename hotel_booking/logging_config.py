from __future__ import annotations

import enum
import logging
import sys
from datetime import date
from decimal import Decimal
from typing import Any, Callable, MutableMapping, cast

import structlog

from hotel_booking.config import DEBUG, LOG_LEVEL

# Type alias for structlog processor
Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

SERVICE_NAME = "hotel-booking"


def render_booking_values(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """
    Render booking value types as plain JSON scalars.

    Amounts stay exact strings ("400.00"), dates become ISO strings and
    status enums their values, instead of the JSON renderer's repr fallback.
    """
    for key, value in event_dict.items():
        if isinstance(value, enum.Enum):
            event_dict[key] = value.value
        elif isinstance(value, Decimal):
            event_dict[key] = str(value)
        elif isinstance(value, date):
            event_dict[key] = value.isoformat()
    return event_dict


def add_service_name(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def setup_logging() -> None:
    """
    Configures structured logging globally using structlog.

    Outside DEBUG: JSON lines for log aggregation, every event tagged with
    service=hotel-booking. With LOG_LEVEL=DEBUG: colored console output.
    """
    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=LOG_LEVEL,
    )

    # Suppress noise from common libraries
    for noisy_logger in [
        "urllib3",
        "requests",
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "uvicorn.access",
    ]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    renderer: Processor = cast(
        Processor,
        (
            structlog.dev.ConsoleRenderer(colors=True)
            if DEBUG
            else structlog.processors.JSONRenderer()
        ),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_service_name,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            render_booking_values,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
