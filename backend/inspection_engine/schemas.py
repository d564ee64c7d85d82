# backend/inspection_engine/schemas.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .domain.keys import ObservationKey, Scope, Severity


# -------------------- Catalog documents --------------------

class DefectIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: str
    weight: Decimal = Field(ge=0)
    life_threatening: bool = Field(default=False, alias="lt")


class CatalogItemIn(BaseModel):
    name: str
    requirement: str = ""
    education: str = ""
    defects: dict[Severity, list[DefectIn]] = Field(default_factory=dict)


class CatalogCategoryIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="category")
    area: Optional[str] = None
    items: list[CatalogItemIn] = Field(default_factory=list)


class CatalogDocument(BaseModel):
    categories: list[CatalogCategoryIn]

    @model_validator(mode="before")
    @classmethod
    def _accept_area_sections(cls, data: Any) -> Any:
        """
        Also accept the sectioned shape:
            {"outside": [category, ...], "inside": [category, ...]}
        Sections are flattened in that order and tag each category's area.
        """
        if not isinstance(data, dict) or "categories" in data:
            return data
        cats: list[dict] = []
        for area in ("outside", "inside"):
            for c in data.get(area) or []:
                if isinstance(c, dict):
                    cats.append({**c, "area": c.get("area") or area})
        return {"categories": cats}


# -------------------- Observation keys --------------------

class ObservationKeyIn(BaseModel):
    scope: str = "common"
    category: int = Field(ge=0)
    item: int = Field(ge=0)
    severity: Severity
    defect: int = Field(ge=0)

    @field_validator("scope", mode="before")
    @classmethod
    def _normalize_scope(cls, v: Any) -> str:
        return Scope.parse(v).to_token()

    def to_key(self) -> ObservationKey:
        return ObservationKey.build(self.scope, self.category, self.item, self.severity, self.defect)

    @classmethod
    def from_key(cls, key: ObservationKey) -> "ObservationKeyIn":
        return cls(
            scope=key.scope.to_token(),
            category=key.category,
            item=key.item,
            severity=key.severity,
            defect=key.defect,
        )


class OccurrenceIn(ObservationKeyIn):
    delta: int = 1


class OccurrenceOut(BaseModel):
    key: ObservationKeyIn
    count: int


class NoteIn(ObservationKeyIn):
    text: Optional[str] = None
    append: bool = False


class NoteOut(BaseModel):
    key: ObservationKeyIn
    note: Optional[str] = None


# -------------------- Persisted inspection document --------------------

class ObservationDoc(ObservationKeyIn):
    count: int = Field(default=0, ge=0)
    note: Optional[str] = None
    media: list[str] = Field(default_factory=list)


class InspectionDocument(BaseModel):
    """Plain, JSON-ready form of an Inspection (counts, notes, media handles)."""

    id: Optional[int] = None
    property_name: str = ""
    year_built: Optional[int] = None
    total_unit_count: int
    sample_size: int
    status: str = "in_progress"
    catalog_version: Optional[str] = None
    observations: list[ObservationDoc] = Field(default_factory=list)


# -------------------- API --------------------

class InspectionCreate(BaseModel):
    property_name: str = ""
    total_units: int
    year_built: Optional[int] = None


class InspectionOut(BaseModel):
    id: int
    property_name: str
    year_built: Optional[int] = None
    total_unit_count: int
    sample_size: int
    status: str
    catalog_version: Optional[str] = None
    observations: list[ObservationDoc] = Field(default_factory=list)


class SampleSizeOut(BaseModel):
    total_units: int
    sample_size: int


class CriticalFindingOut(BaseModel):
    location: str
    item_name: str
    description: str
    count: int


class ScoreOut(BaseModel):
    total_units: int
    sample_size: int
    common_score: float
    interior_score: float
    total_unit_deduction: float
    unit_deductions: dict[str, float] = Field(default_factory=dict)
    final_score: float
    grade: str
    passed: bool
    critical_findings: list[CriticalFindingOut] = Field(default_factory=list)
    failure_reasons: list[str] = Field(default_factory=list)


class ReportRowOut(BaseModel):
    location: str
    category: str
    item: str
    severity: Severity
    description: str
    count: int
    weight: float
    points: float
    life_threatening: bool
    note: Optional[str] = None


class ReportOut(BaseModel):
    property_name: str
    year_built: Optional[int] = None
    status: str
    catalog_version: Optional[str] = None
    score: ScoreOut
    rows: list[ReportRowOut] = Field(default_factory=list)
