# backend/inspection_engine/services/inspection_documents.py
from __future__ import annotations

import json
from typing import Any

from ..domain.ledger import Inspection, InspectionStatus
from ..schemas import InspectionDocument, ObservationDoc, ObservationKeyIn


def to_document(inspection: Inspection) -> InspectionDocument:
    """
    Snapshot an Inspection into its plain form.
    Zero-count entries are kept only when they still carry a note or media.
    """
    observations = []
    for obs in inspection.ledger.entries():
        k = ObservationKeyIn.from_key(obs.key)
        observations.append(
            ObservationDoc(
                **k.model_dump(),
                count=obs.count,
                note=obs.note,
                media=list(obs.media),
            )
        )
    return InspectionDocument(
        id=inspection.id,
        property_name=inspection.property_name,
        year_built=inspection.year_built,
        total_unit_count=inspection.total_unit_count,
        sample_size=inspection.sample_size,
        status=inspection.status.value,
        catalog_version=inspection.catalog_version,
        observations=observations,
    )


def from_document(doc: InspectionDocument) -> Inspection:
    """
    Rebuild an Inspection. Observations are replayed before the status is
    applied, so completed inspections come back read-only.
    """
    insp = Inspection(
        id=doc.id,
        total_unit_count=doc.total_unit_count,
        sample_size=doc.sample_size,
        property_name=doc.property_name,
        year_built=doc.year_built,
        catalog_version=doc.catalog_version,
    )
    for o in doc.observations:
        key = o.to_key()
        insp.check_scope(key)
        if o.count:
            insp.ledger.record_occurrence(key, o.count)
        if o.note:
            insp.ledger.set_note(key, o.note)
        for handle in o.media:
            insp.ledger.attach_media(key, handle)

    insp.status = InspectionStatus(doc.status)
    return insp


def dump_inspection(inspection: Inspection) -> dict[str, Any]:
    return to_document(inspection).model_dump(mode="json")


def load_inspection(data: dict[str, Any]) -> Inspection:
    return from_document(InspectionDocument.model_validate(data))


def dumps_inspection(inspection: Inspection) -> str:
    return json.dumps(dump_inspection(inspection), ensure_ascii=False, sort_keys=True)


def loads_inspection(s: str) -> Inspection:
    return load_inspection(json.loads(s))
