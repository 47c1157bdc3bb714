"""Custom FastAPI middleware for the log server."""

from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp


class AuditLoggerMiddleware(BaseHTTPMiddleware):
    """Log each request with the size of the trace batch it delivered."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self.logger = logging.getLogger("live_tail.api.audit")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration = time.perf_counter() - start
            self.logger.info(
                "api.request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code if response else None,
                    "duration_ms": round(duration * 1000, 3),
                    "content_length": request.headers.get("content-length"),
                    "batch_events": getattr(request.state, "batch_events", None),
                    "script": getattr(request.state, "script_name", None),
                },
            )


__all__ = ["AuditLoggerMiddleware"]
