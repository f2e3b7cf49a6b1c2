# hotel_booking/main.py

import structlog
from fastapi import FastAPI

from hotel_booking.logging_config import setup_logging
from hotel_booking.middleware import RequestIDMiddleware
from hotel_booking.routes.health import router as health_router
from hotel_booking.routes.metrics import router as metrics_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Hotel Booking Engine",
    description="Operational endpoints for the hotel booking engine",
    version="1.0.0",
)

app.add_middleware(RequestIDMiddleware)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
