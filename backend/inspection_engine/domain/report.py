# backend/inspection_engine/domain/report.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional

from .catalog import Catalog
from .keys import ObservationKey, Severity
from .ledger import Inspection, Occurrence
from .scoring import ScoreReport, ScoringPolicy, score_inspection


@dataclass(frozen=True)
class ReportRow:
    key: ObservationKey
    location: str
    category: str
    item: str
    severity: Severity
    description: str
    count: int
    weight: Decimal
    life_threatening: bool
    note: Optional[str]

    @property
    def points(self) -> Decimal:
        return self.weight * self.count


@dataclass(frozen=True)
class InspectionReport:
    property_name: str
    year_built: Optional[int]
    status: str
    catalog_version: Optional[str]
    score: ScoreReport
    rows: tuple[ReportRow, ...]

    def as_dict(self) -> dict[str, Any]:
        r = self.score.policy.round
        return {
            "property_name": self.property_name,
            "year_built": self.year_built,
            "status": self.status,
            "catalog_version": self.catalog_version,
            "score": self.score.as_dict(),
            "rows": [
                {
                    "location": row.location,
                    "category": row.category,
                    "item": row.item,
                    "severity": row.severity.value,
                    "description": row.description,
                    "count": row.count,
                    "weight": float(row.weight),
                    "points": float(r(row.points)),
                    "life_threatening": row.life_threatening,
                    "note": row.note,
                }
                for row in self.rows
            ],
        }


def report_rows(
    occurrences: Iterable[Occurrence],
    catalog: Catalog,
    *,
    severity: Optional[Severity] = None,
) -> list[ReportRow]:
    """
    Every recorded defect joined with catalog text.

    Ordered by (scope, category, item, severity, defect) so exports are stable
    across runs. Dangling keys raise, same as scoring.
    """
    rows: list[ReportRow] = []
    for occ in occurrences:
        if occ.count <= 0:
            continue
        if severity is not None and occ.key.severity != severity:
            continue
        resolved = catalog.resolve(occ.key)
        rows.append(
            ReportRow(
                key=occ.key,
                location=occ.key.scope.label,
                category=resolved.category.name,
                item=resolved.item.name,
                severity=occ.key.severity,
                description=resolved.defect.description,
                count=occ.count,
                weight=resolved.defect.weight,
                life_threatening=resolved.defect.life_threatening,
                note=occ.note,
            )
        )
    rows.sort(key=lambda row: row.key.sort_key())
    return rows


def build_report(
    inspection: Inspection,
    catalog: Catalog,
    policy: Optional[ScoringPolicy] = None,
    *,
    severity: Optional[Severity] = None,
) -> InspectionReport:
    """Score + listing; the severity filter narrows the listing only, never the score."""
    score = score_inspection(inspection, catalog, policy)
    rows = report_rows(inspection.occurrences(), catalog, severity=severity)
    return InspectionReport(
        property_name=inspection.property_name,
        year_built=inspection.year_built,
        status=inspection.status.value,
        catalog_version=inspection.catalog_version,
        score=score,
        rows=tuple(rows),
    )
