# backend/inspection_engine/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .db import init_db
from .domain.errors import (
    DanglingDefectReference,
    InspectionEngineError,
    InspectionLocked,
)
from .logging_config import configure_logging
from .middleware.request_id import RequestIdMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware
from .routers.catalog import router as catalog_router
from .routers.inspections import router as inspections_router

API_PREFIX = "/api"

log = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    val = getattr(settings, "cors_allow_origins", ["*"])
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


def _error_body(exc: Exception, code: str) -> dict:
    return {"detail": str(exc), "error": code}


async def _conflict(request: Request, exc: InspectionEngineError) -> JSONResponse:
    code = "dangling_defect_reference" if isinstance(exc, DanglingDefectReference) else "inspection_locked"
    return JSONResponse(status_code=409, content=_error_body(exc, code))


async def _bad_request(request: Request, exc: InspectionEngineError) -> JSONResponse:
    return JSONResponse(status_code=400, content=_error_body(exc, type(exc).__name__))


def create_app() -> FastAPI:
    configure_logging()
    init_db()

    app = FastAPI(title="Property Inspection Scoring Engine", version="0.1.0")

    # Starlette wraps in reverse: RequestId ends up outermost.
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DanglingDefectReference, _conflict)
    app.add_exception_handler(InspectionLocked, _conflict)
    app.add_exception_handler(InspectionEngineError, _bad_request)

    app.include_router(catalog_router, prefix=API_PREFIX)
    app.include_router(inspections_router, prefix=API_PREFIX)

    log.info("app ready", extra={"inspection_id": None})
    return app


app = create_app()
