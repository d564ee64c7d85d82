# backend/inspection_engine/services/engine_provider.py
from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..domain.engine import InspectionEngine
from ..domain.ledger import Inspection
from .inspection_store import load_inspection


@lru_cache(maxsize=1)
def get_engine() -> InspectionEngine:
    """FastAPI dependency; tests swap it through app.dependency_overrides."""
    return InspectionEngine.from_settings()


def must_get_inspection(db: Session, *, inspection_id: int) -> Inspection:
    insp = load_inspection(db, inspection_id)
    if insp is None:
        raise HTTPException(status_code=404, detail="inspection not found")
    return insp
