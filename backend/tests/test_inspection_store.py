from __future__ import annotations

import pytest
from sqlalchemy import func, select

from conftest import COMMON_ROAD_SEVERE, key

from inspection_engine.domain.ledger import Inspection
from inspection_engine.models import InspectionRecord, ObservationRecord
from inspection_engine.services.inspection_store import (
    create_inspection,
    list_inspections,
    load_inspection,
    mark_complete,
    save_inspection,
)


def _observation_rows(db, inspection_id: int) -> int:
    return db.scalar(
        select(func.count()).select_from(ObservationRecord).where(ObservationRecord.inspection_id == inspection_id)
    )


def test_create_and_load(db_session, engine):
    insp = engine.start_inspection(65, property_name="Birch Flats", year_built=1992)
    engine.record_occurrence(insp, key("unit-2", 1, 1, "moderate", 0), 3)

    row = create_inspection(db_session, insp)

    assert insp.id == row.id
    assert row.sample_size == 6
    assert row.catalog_version == engine.catalog.version

    back = load_inspection(db_session, insp.id)
    assert back.property_name == "Birch Flats"
    assert back.year_built == 1992
    assert back.ledger.count(key("unit-2", 1, 1, "moderate", 0)) == 3
    assert engine.score(back) == engine.score(insp)


def test_load_missing_returns_none(db_session):
    assert load_inspection(db_session, 12345) is None


def test_save_upserts_one_row_per_key(db_session, engine):
    insp = engine.start_inspection(10)
    create_inspection(db_session, insp)

    for _ in range(4):
        engine.record_occurrence(insp, COMMON_ROAD_SEVERE)
        save_inspection(db_session, insp)

    assert _observation_rows(db_session, insp.id) == 1
    assert load_inspection(db_session, insp.id).ledger.count(COMMON_ROAD_SEVERE) == 4


def test_decrement_to_zero_removes_the_row(db_session, engine):
    insp = engine.start_inspection(10)
    engine.record_occurrence(insp, COMMON_ROAD_SEVERE)
    create_inspection(db_session, insp)
    assert _observation_rows(db_session, insp.id) == 1

    engine.record_occurrence(insp, COMMON_ROAD_SEVERE, -1)
    save_inspection(db_session, insp)

    assert _observation_rows(db_session, insp.id) == 0


def test_note_keeps_zero_count_row(db_session, engine):
    insp = engine.start_inspection(10)
    k = key("unit-1", 1, 1, "moderate", 0)
    engine.record_occurrence(insp, k)
    engine.set_note(insp, k, "re-check")
    insp.attach_media(k, "photo://fridge")
    create_inspection(db_session, insp)

    engine.record_occurrence(insp, k, -1)
    save_inspection(db_session, insp)

    back = load_inspection(db_session, insp.id)
    assert back.ledger.count(k) == 0
    assert back.ledger.note(k) == "re-check"
    assert back.ledger.get(k).media == ["photo://fridge"]
    assert list(back.occurrences()) == []


def test_completion_is_persisted(db_session, engine):
    insp = engine.start_inspection(10)
    create_inspection(db_session, insp)

    row = mark_complete(db_session, insp)

    assert row.status == "completed"
    assert row.completed_at is not None
    assert load_inspection(db_session, insp.id).is_complete


def test_save_requires_a_persisted_inspection(db_session):
    with pytest.raises(ValueError):
        save_inspection(db_session, Inspection(total_unit_count=5, sample_size=2))
    with pytest.raises(LookupError):
        save_inspection(db_session, Inspection(total_unit_count=5, sample_size=2, id=999))


def test_list_inspections_newest_first(db_session, engine):
    ids = []
    for n in (5, 10, 20):
        insp = engine.start_inspection(n)
        create_inspection(db_session, insp)
        ids.append(insp.id)

    listed = [r.id for r in list_inspections(db_session)]
    assert listed == list(reversed(ids))
    assert all(isinstance(r, InspectionRecord) for r in list_inspections(db_session, limit=1))
