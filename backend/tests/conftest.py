# backend/tests/conftest.py
from __future__ import annotations

import os

# Must be set before inspection_engine.config is imported anywhere.
os.environ.setdefault("INSPECTION_DATABASE_URL", "sqlite+pysqlite:///:memory:")

from decimal import Decimal

import pytest

from inspection_engine.domain.catalog import Catalog, CatalogCategory, CatalogItem, DefectDefinition
from inspection_engine.domain.engine import InspectionEngine
from inspection_engine.domain.keys import ObservationKey, Scope, Severity


def _d(description: str, weight: str, lt: bool = False) -> DefectDefinition:
    return DefectDefinition(description=description, weight=Decimal(weight), life_threatening=lt)


def make_catalog() -> Catalog:
    """
    Small fixed catalog used across the domain tests.

      0 Site (outside)
          0 Roads/Drives            moderate[0]=0.20  severe[0]=0.55
          1 Electrical Enclosures   severe[0]=0.55    severe[1]=2.25 (LT)
      1 Unit Interior (inside)
          0 Wires or Conductors     severe[0]=2.50    severe[1]=2.50 (LT)
          1 Refrigerator            moderate[0]=0.23
          2 Smoke Alarm             low[0]=1.00       severe[0]=1.00 (LT)
    """
    site = CatalogCategory(
        name="Site",
        area="outside",
        items=(
            CatalogItem(
                name="Roads/Drives",
                requirement="Roads must be passable.",
                defects_by_severity={
                    Severity.MODERATE: (_d("Pothole 4in deep", "0.20"),),
                    Severity.SEVERE: (_d("Access blocked/impassable", "0.55"),),
                },
            ),
            CatalogItem(
                name="Electrical Enclosures",
                defects_by_severity={
                    Severity.SEVERE: (
                        _d("Water intrusion over components", "0.55"),
                        _d("Damaged breakers", "2.25", lt=True),
                    ),
                },
            ),
        ),
    )
    interior = CatalogCategory(
        name="Unit Interior",
        area="inside",
        items=(
            CatalogItem(
                name="Wires or Conductors",
                defects_by_severity={
                    Severity.SEVERE: (
                        _d("Damaged/missing cover", "2.50"),
                        _d("Exposed wire nuts", "2.50", lt=True),
                    ),
                },
            ),
            CatalogItem(
                name="Refrigerator",
                defects_by_severity={Severity.MODERATE: (_d("Not cooling adequately", "0.23"),)},
            ),
            CatalogItem(
                name="Smoke Alarm",
                defects_by_severity={
                    Severity.LOW: (_d("Alarm chirping", "1.00"),),
                    Severity.SEVERE: (_d("Missing smoke alarm", "1.00", lt=True),),
                },
            ),
        ),
    )
    return Catalog([site, interior])


def key(scope, category: int, item: int, severity: str, defect: int) -> ObservationKey:
    return ObservationKey.build(scope, category, item, severity, defect)


COMMON_ROAD_SEVERE = ObservationKey(Scope.common(), 0, 0, Severity.SEVERE, 0)  # 0.55
COMMON_BREAKER_LT = ObservationKey(Scope.common(), 0, 1, Severity.SEVERE, 1)  # 2.25 LT


@pytest.fixture
def catalog() -> Catalog:
    return make_catalog()


@pytest.fixture
def engine(catalog: Catalog) -> InspectionEngine:
    return InspectionEngine(catalog)


@pytest.fixture
def db_session():
    from inspection_engine.db import Base, SessionLocal, engine as db_engine, init_db

    Base.metadata.drop_all(bind=db_engine)
    init_db(db_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient

    from inspection_engine.main import app

    with TestClient(app) as c:
        yield c
