# backend/inspection_engine/routers/inspections.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..domain.engine import InspectionEngine
from ..domain.keys import Severity
from ..schemas import (
    InspectionCreate,
    InspectionOut,
    NoteIn,
    NoteOut,
    ObservationKeyIn,
    OccurrenceIn,
    OccurrenceOut,
    ReportOut,
    ScoreOut,
)
from ..services.engine_provider import get_engine, must_get_inspection
from ..services.inspection_documents import to_document
from ..services.inspection_store import create_inspection, mark_complete, save_inspection

log = logging.getLogger(__name__)

router = APIRouter(prefix="/inspections", tags=["inspections"])


def _out(insp) -> InspectionOut:
    doc = to_document(insp)
    return InspectionOut(**doc.model_dump())


@router.post("", response_model=InspectionOut)
def start_inspection(
    payload: InspectionCreate,
    db: Session = Depends(get_db),
    engine: InspectionEngine = Depends(get_engine),
) -> InspectionOut:
    insp = engine.start_inspection(
        payload.total_units,
        property_name=payload.property_name,
        year_built=payload.year_built,
    )
    create_inspection(db, insp)
    log.info("inspection created", extra={"inspection_id": insp.id, "catalog_version": insp.catalog_version})
    return _out(insp)


@router.get("/{inspection_id}", response_model=InspectionOut)
def get_inspection(inspection_id: int, db: Session = Depends(get_db)) -> InspectionOut:
    return _out(must_get_inspection(db, inspection_id=inspection_id))


@router.post("/{inspection_id}/occurrences", response_model=OccurrenceOut)
def record_occurrence(
    inspection_id: int,
    payload: OccurrenceIn,
    db: Session = Depends(get_db),
    engine: InspectionEngine = Depends(get_engine),
) -> OccurrenceOut:
    insp = must_get_inspection(db, inspection_id=inspection_id)
    key = payload.to_key()

    count = engine.record_occurrence(insp, key, payload.delta)
    save_inspection(db, insp)

    return OccurrenceOut(key=ObservationKeyIn.from_key(key), count=count)


@router.put("/{inspection_id}/notes", response_model=NoteOut)
def set_note(
    inspection_id: int,
    payload: NoteIn,
    db: Session = Depends(get_db),
    engine: InspectionEngine = Depends(get_engine),
) -> NoteOut:
    insp = must_get_inspection(db, inspection_id=inspection_id)
    key = payload.to_key()

    engine.lookup(key)
    if payload.append:
        insp.append_note(key, payload.text or "")
    else:
        insp.set_note(key, payload.text)
    save_inspection(db, insp)

    return NoteOut(key=ObservationKeyIn.from_key(key), note=insp.ledger.note(key))


@router.post("/{inspection_id}/complete", response_model=ScoreOut)
def complete_inspection(
    inspection_id: int,
    db: Session = Depends(get_db),
    engine: InspectionEngine = Depends(get_engine),
) -> ScoreOut:
    insp = must_get_inspection(db, inspection_id=inspection_id)
    result = engine.complete(insp)
    mark_complete(db, insp)
    return ScoreOut(**result.as_dict())


@router.get("/{inspection_id}/score", response_model=ScoreOut)
def get_score(
    inspection_id: int,
    db: Session = Depends(get_db),
    engine: InspectionEngine = Depends(get_engine),
) -> ScoreOut:
    insp = must_get_inspection(db, inspection_id=inspection_id)
    return ScoreOut(**engine.score(insp).as_dict())


@router.get("/{inspection_id}/report", response_model=ReportOut)
def get_report(
    inspection_id: int,
    severity: Optional[Severity] = Query(default=None),
    db: Session = Depends(get_db),
    engine: InspectionEngine = Depends(get_engine),
) -> ReportOut:
    insp = must_get_inspection(db, inspection_id=inspection_id)
    return ReportOut(**engine.report(insp, severity=severity).as_dict())
