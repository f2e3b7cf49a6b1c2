"""
FastAPI middleware for request correlation.
"""

from __future__ import annotations

import uuid
from typing import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Attach a unique request ID to every HTTP request.

    The ID is:
    1. Taken from an incoming X-Request-ID header, or generated as a UUID4
    2. Stored in request.state.request_id
    3. Bound into structlog contextvars, so every log line emitted while
       handling the request carries request_id
    4. Returned to the client in the X-Request-ID response header
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        return response
