"""
wiwebb_data.observability.middleware

HTTP middleware for request-scoped logging context on the dev server.

Responsibilities:
- Generate/propagate request IDs.
- Bind request metadata into structlog contextvars.
- Log one completion line per request with status and elapsed time.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = structlog.get_logger(__name__)

# Probes would otherwise dominate the dev server log.
QUIET_PATHS = frozenset({"/healthz"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        started = time.perf_counter()
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        try:
            response: Response = await call_next(request)
            if request.url.path not in QUIET_PATHS:
                log.info(
                    "request.completed",
                    status=response.status_code,
                    elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
                )
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["x-request-id"] = request_id
        return response
