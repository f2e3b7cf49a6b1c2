"""
FastAPI dependency providers.

Routes receive the engine through ``Depends(get_db_engine)`` so tests can
swap it with ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Generator

from sqlalchemy.engine import Engine

from hotel_booking.db.engine import engine


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide the application database engine.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: build_engine("sqlite://")
    """
    yield engine
