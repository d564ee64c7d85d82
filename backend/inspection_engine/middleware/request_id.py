# backend/inspection_engine/middleware/request_id.py
from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

HEADER = "X-Request-ID"
MAX_INCOMING_LEN = 128

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return request_id_ctx.get()


def _pick_request_id(incoming: str | None) -> str:
    rid = (incoming or "").strip()
    if not rid or len(rid) > MAX_INCOMING_LEN:
        return uuid.uuid4().hex
    return rid


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tags every inspection API call with an id that the JSON log lines carry.

    A caller-supplied X-Request-ID is reused when it is short enough; the id
    is also put on request.state and returned in the response header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = _pick_request_id(request.headers.get(HEADER))
        request.state.request_id = rid

        token = request_id_ctx.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers[HEADER] = rid
        return response
