# backend/inspection_engine/middleware/structured_logging.py
from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("inspection_engine.request")


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line per request:
      method, path, status_code, latency_ms, inspection_id (when the path
      carries one). request_id comes from the ContextVar, so this must run
      inside RequestIdMiddleware.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        t0 = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            latency_ms = int((time.perf_counter() - t0) * 1000)
            inspection_id = request.path_params.get("inspection_id") if request.path_params else None

            log.info(
                "%s %s -> %s (%sms)",
                request.method,
                request.url.path,
                status_code,
                latency_ms,
                extra={"inspection_id": inspection_id},
            )
