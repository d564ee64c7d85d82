# backend/inspection_engine/services/inspection_store.py
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.keys import ObservationKey
from ..domain.ledger import Inspection, InspectionStatus
from ..models import InspectionRecord, ObservationRecord

log = logging.getLogger(__name__)


def _key_of(row: ObservationRecord) -> ObservationKey:
    return ObservationKey.build(row.scope, row.category_index, row.item_index, row.severity, row.defect_index)


def _media_of(row: ObservationRecord) -> list[str]:
    if not row.media_json:
        return []
    try:
        v = json.loads(row.media_json)
    except json.JSONDecodeError:
        log.warning("unreadable media_json on observation %s", row.id, extra={"inspection_id": row.inspection_id})
        return []
    return [str(x) for x in v] if isinstance(v, list) else []


def create_inspection(db: Session, inspection: Inspection, *, commit: bool = True) -> InspectionRecord:
    row = InspectionRecord(
        property_name=inspection.property_name,
        year_built=inspection.year_built,
        total_unit_count=inspection.total_unit_count,
        sample_size=inspection.sample_size,
        status=inspection.status.value,
        catalog_version=inspection.catalog_version,
    )
    db.add(row)
    db.flush()
    inspection.id = row.id

    save_inspection(db, inspection, commit=False)
    if commit:
        db.commit()
        db.refresh(row)
    return row


def load_inspection(db: Session, inspection_id: int) -> Optional[Inspection]:
    row = db.get(InspectionRecord, inspection_id)
    if row is None:
        return None

    insp = Inspection(
        id=row.id,
        total_unit_count=row.total_unit_count,
        sample_size=row.sample_size,
        property_name=row.property_name or "",
        year_built=row.year_built,
        catalog_version=row.catalog_version,
    )
    rows = db.scalars(
        select(ObservationRecord)
        .where(ObservationRecord.inspection_id == row.id)
        .order_by(ObservationRecord.id.asc())
    ).all()
    for o in rows:
        key = _key_of(o)
        if o.count:
            insp.ledger.record_occurrence(key, o.count)
        if o.note:
            insp.ledger.set_note(key, o.note)
        for handle in _media_of(o):
            insp.ledger.attach_media(key, handle)

    insp.status = InspectionStatus(row.status)
    return insp


def save_inspection(db: Session, inspection: Inspection, *, commit: bool = True) -> InspectionRecord:
    """
    Write the ledger back, one row per key (last write wins per key).
    Rows whose key is no longer retained by the ledger are deleted.
    """
    if inspection.id is None:
        raise ValueError("inspection has no id; use create_inspection first")

    row = db.get(InspectionRecord, inspection.id)
    if row is None:
        raise LookupError(f"inspection {inspection.id} not found")

    now = datetime.utcnow()
    existing = {
        _key_of(o): o
        for o in db.scalars(select(ObservationRecord).where(ObservationRecord.inspection_id == row.id)).all()
    }

    kept: set[ObservationKey] = set()
    for obs in inspection.ledger.entries():
        kept.add(obs.key)
        media_json = json.dumps(obs.media) if obs.media else None
        rec = existing.get(obs.key)
        if rec is None:
            db.add(
                ObservationRecord(
                    inspection_id=row.id,
                    scope=obs.key.scope.to_token(),
                    category_index=obs.key.category,
                    item_index=obs.key.item,
                    severity=obs.key.severity.value,
                    defect_index=obs.key.defect,
                    count=obs.count,
                    note=obs.note,
                    media_json=media_json,
                    updated_at=now,
                )
            )
        elif (rec.count, rec.note, rec.media_json) != (obs.count, obs.note, media_json):
            rec.count = obs.count
            rec.note = obs.note
            rec.media_json = media_json
            rec.updated_at = now

    for key, rec in existing.items():
        if key not in kept:
            db.delete(rec)

    if inspection.is_complete and row.status != InspectionStatus.COMPLETED.value:
        row.completed_at = now
    row.status = inspection.status.value
    row.updated_at = now

    db.flush()
    if commit:
        db.commit()
    return row


def mark_complete(db: Session, inspection: Inspection, *, commit: bool = True) -> InspectionRecord:
    """Freeze the inspection and persist it together with its completion time."""
    inspection.complete()
    return save_inspection(db, inspection, commit=commit)


def list_inspections(db: Session, *, limit: int = 50) -> list[InspectionRecord]:
    stmt = select(InspectionRecord).order_by(InspectionRecord.id.desc()).limit(max(1, int(limit)))
    return list(db.scalars(stmt).all())
