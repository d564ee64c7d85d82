from __future__ import annotations

import pytest

from conftest import COMMON_ROAD_SEVERE, key

from inspection_engine.domain.errors import InspectionLocked, ScopeOutOfRange
from inspection_engine.services.inspection_documents import (
    dump_inspection,
    dumps_inspection,
    load_inspection,
    loads_inspection,
)


def test_document_round_trip_scores_the_same(engine):
    insp = engine.start_inspection(100, property_name="Elm Street Apartments", year_built=1978)
    engine.record_occurrence(insp, key("unit-3", 1, 0, "severe", 1), 2)
    engine.record_occurrence(insp, COMMON_ROAD_SEVERE, 5)
    insp.attach_media(COMMON_ROAD_SEVERE, "s3://photos/road-1.jpg")

    back = load_inspection(dump_inspection(insp))

    assert back.property_name == "Elm Street Apartments"
    assert back.year_built == 1978
    assert back.sample_size == 8
    assert back.catalog_version == insp.catalog_version
    assert back.ledger.get(COMMON_ROAD_SEVERE).media == ["s3://photos/road-1.jpg"]
    assert engine.score(back) == engine.score(insp)


def test_note_on_zero_count_is_kept(engine):
    insp = engine.start_inspection(10)
    k = key("unit-2", 1, 1, "moderate", 0)
    engine.set_note(insp, k, "check again after repair")

    doc = dump_inspection(insp)
    assert doc["observations"] == [
        {
            "scope": "unit-2",
            "category": 1,
            "item": 1,
            "severity": "moderate",
            "defect": 0,
            "count": 0,
            "note": "check again after repair",
            "media": [],
        }
    ]

    back = load_inspection(doc)
    assert back.ledger.note(k) == "check again after repair"
    assert back.ledger.count(k) == 0


def test_completed_document_loads_read_only(engine):
    insp = engine.start_inspection(10)
    engine.record_occurrence(insp, COMMON_ROAD_SEVERE)
    engine.complete(insp)

    back = loads_inspection(dumps_inspection(insp))

    assert back.is_complete
    assert back.ledger.count(COMMON_ROAD_SEVERE) == 1
    with pytest.raises(InspectionLocked):
        back.record_occurrence(COMMON_ROAD_SEVERE)


def test_document_with_unit_beyond_sample_is_rejected():
    doc = {
        "total_unit_count": 10,
        "sample_size": 3,
        "observations": [{"scope": "unit-4", "category": 0, "item": 0, "severity": "low", "defect": 0, "count": 1}],
    }
    with pytest.raises(ScopeOutOfRange):
        load_inspection(doc)


def test_json_text_is_stable(engine):
    insp = engine.start_inspection(10)
    engine.record_occurrence(insp, COMMON_ROAD_SEVERE)
    assert dumps_inspection(insp) == dumps_inspection(loads_inspection(dumps_inspection(insp)))
