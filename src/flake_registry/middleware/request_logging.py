"""Request logging middleware for FastAPI.

Logs one line per request with the method, URI, client address, response
status and duration.

Usage:
    app.add_middleware(RequestLoggingMiddleware)
"""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        ip = request.client.host if request.client else "-"
        uri = request.url.path
        if request.url.query:
            uri = f"{uri}?{request.url.query}"
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.exception("%s %s ip=%s failed after %.1fms", request.method, uri, ip, elapsed_ms)
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s ip=%s status=%s %.1fms",
            request.method,
            uri,
            ip,
            response.status_code,
            elapsed_ms,
        )
        return response
