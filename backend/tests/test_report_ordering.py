from __future__ import annotations

from decimal import Decimal

import pytest

from conftest import COMMON_BREAKER_LT, COMMON_ROAD_SEVERE, key

from inspection_engine.domain.errors import DanglingDefectReference
from inspection_engine.domain.keys import Severity


def _populated(engine):
    insp = engine.start_inspection(40, property_name="Maple Court")
    engine.record_occurrence(insp, key("unit-3", 1, 1, "moderate", 0))
    engine.record_occurrence(insp, key("unit-1", 1, 0, "severe", 1), 2)
    engine.record_occurrence(insp, COMMON_ROAD_SEVERE)
    engine.record_occurrence(insp, COMMON_BREAKER_LT)
    engine.set_note(insp, key("unit-1", 1, 0, "severe", 1), "kitchen outlet, no cover plate")
    return insp


def test_rows_are_ordered_and_joined_with_catalog_text(engine):
    rep = engine.report(_populated(engine))

    assert [(r.location, r.item) for r in rep.rows] == [
        ("Common Area", "Roads/Drives"),
        ("Common Area", "Electrical Enclosures"),
        ("Unit 1", "Wires or Conductors"),
        ("Unit 3", "Refrigerator"),
    ]
    wires = rep.rows[2]
    assert wires.category == "Unit Interior"
    assert wires.description == "Exposed wire nuts"
    assert wires.count == 2
    assert wires.points == Decimal("5.00")
    assert wires.life_threatening is True
    assert wires.note == "kitchen outlet, no cover plate"
    assert rep.property_name == "Maple Court"
    assert rep.status == "in_progress"


def test_severity_filter_narrows_rows_but_not_score(engine):
    insp = _populated(engine)
    full = engine.report(insp)
    moderate = engine.report(insp, severity=Severity.MODERATE)

    assert [r.item for r in moderate.rows] == ["Refrigerator"]
    assert moderate.score == full.score


def test_report_as_dict_is_plain_data(engine):
    d = engine.report(_populated(engine)).as_dict()

    assert d["score"]["passed"] is False
    assert "life_threatening_defect" in d["score"]["failure_reasons"]
    assert d["rows"][0]["severity"] == "severe"
    assert d["rows"][0]["points"] == 0.55
    assert d["catalog_version"]


def test_zero_count_entries_do_not_appear(engine):
    insp = engine.start_inspection(10)
    k = key("unit-1", 1, 1, "moderate", 0)
    engine.record_occurrence(insp, k)
    engine.set_note(insp, k, "kept")
    engine.record_occurrence(insp, k, -1)

    assert engine.report(insp).rows == ()


def test_engine_rejects_unknown_key_at_capture(engine):
    insp = engine.start_inspection(10)
    with pytest.raises(DanglingDefectReference):
        engine.record_occurrence(insp, key("unit-1", 1, 1, "severe", 0))
    assert len(insp.ledger) == 0
