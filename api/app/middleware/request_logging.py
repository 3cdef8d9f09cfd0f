# api/app/middleware/request_logging.py
"""
Access log line per request. Auth is handled in dependencies.py via Depends().
"""
from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        t0 = time.monotonic()
        response = await call_next(request)
        elapsed = (time.monotonic() - t0) * 1000
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %d (%.0fms)",
            request.method, request.url.path, response.status_code, elapsed,
        )
        response.headers["X-Response-Time"] = f"{elapsed:.0f}ms"
        return response
