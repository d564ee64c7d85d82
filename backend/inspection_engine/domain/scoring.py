# backend/inspection_engine/domain/scoring.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Optional

from .catalog import Catalog
from .errors import DanglingDefectReference, InvalidPopulationSize
from .keys import ObservationKey
from .ledger import Inspection, Occurrence

log = logging.getLogger(__name__)

BASELINE = Decimal(100)
ZERO = Decimal(0)

REASON_SCORE_BELOW_MINIMUM = "score_below_minimum"
REASON_INTERIOR_EXCEEDED = "interior_deduction_exceeded"
REASON_COMMON_EXCEEDED = "common_deduction_exceeded"
REASON_LIFE_THREATENING = "life_threatening_defect"

DEFAULT_GRADE_BANDS: tuple[tuple[Decimal, str], ...] = (
    (Decimal(90), "A"),
    (Decimal(80), "B"),
    (Decimal(70), "C"),
    (Decimal(60), "D"),
)


def _to_decimal(v: Any) -> Optional[Decimal]:
    if v is None:
        return None
    if isinstance(v, Decimal):
        return v
    return Decimal(str(v))


@dataclass(frozen=True)
class ScoringPolicy:
    """
    Pass/fail thresholds. Each one is an independent failure trigger and
    `None` disables it. A life-threatening finding always fails the
    inspection and is not configurable.

    Defaults:
      - fail when final score < 60
      - fail when extrapolated interior deduction >= 30
      - fail when common-area deduction >= 40
      - fail on any life-threatening defect
    """

    min_passing_score: Optional[Decimal] = Decimal(60)
    max_interior_deduction: Optional[Decimal] = Decimal(30)
    max_common_deduction: Optional[Decimal] = Decimal(40)
    score_decimals: int = 2
    grade_bands: tuple[tuple[Decimal, str], ...] = DEFAULT_GRADE_BANDS

    def __post_init__(self) -> None:
        for name in ("min_passing_score", "max_interior_deduction", "max_common_deduction"):
            object.__setattr__(self, name, _to_decimal(getattr(self, name)))
        bands = tuple((_to_decimal(lo), str(letter)) for lo, letter in self.grade_bands)
        object.__setattr__(self, "grade_bands", tuple(sorted(bands, key=lambda b: b[0], reverse=True)))
        if not 0 <= int(self.score_decimals) <= 6:
            raise ValueError(f"score_decimals must be within 0..6, got {self.score_decimals}")

    @classmethod
    def from_settings(cls, s=None) -> "ScoringPolicy":
        if s is None:
            from ..config import settings as s
        return cls(
            min_passing_score=s.min_passing_score,
            max_interior_deduction=s.max_interior_deduction,
            max_common_deduction=s.max_common_deduction,
            score_decimals=s.score_decimals,
        )

    def round(self, value: Decimal) -> Decimal:
        return value.quantize(Decimal(1).scaleb(-int(self.score_decimals)), rounding=ROUND_HALF_UP)

    def grade(self, score: Decimal) -> str:
        shown = self.round(score)
        for lo, letter in self.grade_bands:
            if shown >= lo:
                return letter
        return "F"


@dataclass(frozen=True)
class CriticalFinding:
    key: ObservationKey
    item_name: str
    description: str
    count: int

    @property
    def location(self) -> str:
        return self.key.scope.label


@dataclass(frozen=True)
class ScoreReport:
    total_units: int
    sample_size: int
    common_deduction: Decimal
    unit_deductions: Mapping[int, Decimal]
    total_unit_deduction: Decimal
    interior_deduction: Decimal
    final_score: Decimal
    passed: bool
    grade: str
    critical_findings: tuple[CriticalFinding, ...] = ()
    failure_reasons: tuple[str, ...] = ()
    policy: ScoringPolicy = field(default_factory=ScoringPolicy, compare=False, repr=False)

    # Deduction points, under the names report consumers expect.
    @property
    def common_score(self) -> Decimal:
        return self.common_deduction

    @property
    def interior_score(self) -> Decimal:
        return self.interior_deduction

    @property
    def display_score(self) -> Decimal:
        return self.policy.round(self.final_score)

    def rounded(self, value: Decimal) -> Decimal:
        return self.policy.round(value)

    def as_dict(self) -> dict[str, Any]:
        r = self.policy.round
        return {
            "total_units": self.total_units,
            "sample_size": self.sample_size,
            "common_score": float(r(self.common_deduction)),
            "interior_score": float(r(self.interior_deduction)),
            "total_unit_deduction": float(r(self.total_unit_deduction)),
            "unit_deductions": {str(u): float(r(v)) for u, v in sorted(self.unit_deductions.items())},
            "final_score": float(self.display_score),
            "grade": self.grade,
            "passed": self.passed,
            "critical_findings": [
                {
                    "location": f.location,
                    "item_name": f.item_name,
                    "description": f.description,
                    "count": f.count,
                }
                for f in self.critical_findings
            ],
            "failure_reasons": list(self.failure_reasons),
        }


def extrapolate_interior(total_unit_deduction: Decimal, *, sample_size: int, total_units: int) -> Decimal:
    """
    Scale the average deduction per sampled unit up to the whole population:
        (total_unit_deduction / sample_size) * total_units
    """
    if isinstance(sample_size, bool) or not isinstance(sample_size, int) or sample_size <= 0:
        raise InvalidPopulationSize(sample_size, field="sample_size")
    if isinstance(total_units, bool) or not isinstance(total_units, int) or total_units <= 0:
        raise InvalidPopulationSize(total_units, field="total_units")
    return (total_unit_deduction / Decimal(sample_size)) * Decimal(total_units)


def compute_score(
    occurrences: Iterable[Occurrence],
    catalog: Catalog,
    *,
    total_units: int,
    sample_size: int,
    policy: Optional[ScoringPolicy] = None,
) -> ScoreReport:
    """
    Deterministic, explainable score for one ledger snapshot.

    Steps:
      1) partition count * weight into common vs per sampled unit
      2) sum the unit partitions
      3) extrapolate the per-unit average to the full population
      4) final = max(0, 100 - common - interior)
      5) collect life-threatening findings
      6) apply every failure trigger of the policy

    Cost is linear in the number of recorded keys, not the catalog size.
    A key that does not resolve aborts the whole computation.
    """
    policy = policy or ScoringPolicy()

    common = ZERO
    per_unit: dict[int, Decimal] = {}
    critical: list[CriticalFinding] = []

    for occ in occurrences:
        if occ.count <= 0:
            continue
        try:
            resolved = catalog.resolve(occ.key)
        except DanglingDefectReference:
            log.error("dangling defect reference", extra={"scope": str(occ.key.scope), "key": str(occ.key)})
            raise

        points = resolved.defect.weight * occ.count
        unit = occ.key.scope.unit
        if unit is None:
            common += points
        else:
            per_unit[unit] = per_unit.get(unit, ZERO) + points

        if resolved.defect.life_threatening:
            critical.append(
                CriticalFinding(
                    key=occ.key,
                    item_name=resolved.item.name,
                    description=resolved.defect.description,
                    count=occ.count,
                )
            )

    total_unit = sum(per_unit.values(), ZERO)
    interior = extrapolate_interior(total_unit, sample_size=sample_size, total_units=total_units)
    final = max(ZERO, BASELINE - common - interior)
    critical.sort(key=lambda f: f.key.sort_key())

    reasons: list[str] = []
    if policy.min_passing_score is not None and final < policy.min_passing_score:
        reasons.append(REASON_SCORE_BELOW_MINIMUM)
    if policy.max_interior_deduction is not None and interior >= policy.max_interior_deduction:
        reasons.append(REASON_INTERIOR_EXCEEDED)
    if policy.max_common_deduction is not None and common >= policy.max_common_deduction:
        reasons.append(REASON_COMMON_EXCEEDED)
    if critical:
        reasons.append(REASON_LIFE_THREATENING)

    report = ScoreReport(
        total_units=total_units,
        sample_size=sample_size,
        common_deduction=common,
        unit_deductions=dict(sorted(per_unit.items())),
        total_unit_deduction=total_unit,
        interior_deduction=interior,
        final_score=final,
        passed=not reasons,
        grade=policy.grade(final),
        critical_findings=tuple(critical),
        failure_reasons=tuple(reasons),
        policy=policy,
    )

    log.debug(
        "score computed",
        extra={
            "final_score": str(report.display_score),
            "passed": report.passed,
            "critical": len(report.critical_findings),
        },
    )
    return report


def score_inspection(
    inspection: Inspection,
    catalog: Catalog,
    policy: Optional[ScoringPolicy] = None,
) -> ScoreReport:
    if inspection.catalog_version and inspection.catalog_version != catalog.version:
        log.warning(
            "catalog version drift: inspection recorded against %s, scoring with %s",
            inspection.catalog_version,
            catalog.version,
            extra={"inspection_id": inspection.id, "catalog_version": catalog.version},
        )
    return compute_score(
        inspection.occurrences(),
        catalog,
        total_units=inspection.total_unit_count,
        sample_size=inspection.sample_size,
        policy=policy,
    )
