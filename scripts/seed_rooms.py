import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
from decimal import Decimal

import structlog

from hotel_booking.db.engine import engine, transaction
from hotel_booking.db.writers.rooms import insert_room, insert_room_category
from hotel_booking.logging_config import setup_logging
from hotel_booking.models.base import Base

setup_logging()
logger = structlog.get_logger(__name__)


def seed(category: str, base_rate: Decimal, max_occupancy: int, room_numbers: list[str]) -> None:
    """
    Create the booking tables if needed and add one category with its rooms.
    """
    Base.metadata.create_all(engine)

    with transaction(engine) as conn:
        category_id = insert_room_category(
            conn,
            {"name": category, "base_rate": base_rate, "max_occupancy": max_occupancy},
        )
        for number in room_numbers:
            insert_room(conn, {"room_number": number, "category_id": category_id})

    logger.info(
        "rooms_seeded",
        category=category,
        category_id=category_id,
        room_count=len(room_numbers),
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a room category and its rooms.")
    parser.add_argument("--category", default="Standard", help="Room category name")
    parser.add_argument("--base-rate", type=Decimal, default=Decimal("100.00"))
    parser.add_argument("--max-occupancy", type=int, default=2)
    parser.add_argument("rooms", nargs="+", help="Room numbers, e.g. 101 102 103")
    args = parser.parse_args()

    try:
        seed(args.category, args.base_rate, args.max_occupancy, args.rooms)
    except Exception:
        logger.exception("rooms_seed_failed", category=args.category)
        raise


if __name__ == "__main__":
    main()
