# backend/inspection_engine/domain/engine.py
from __future__ import annotations

import logging
from typing import Optional

from .catalog import Catalog, ResolvedDefect
from .keys import ObservationKey, Severity
from .ledger import Inspection
from .report import InspectionReport, build_report
from .sampling import SampleSizeResolver
from .scoring import ScoreReport, ScoringPolicy, score_inspection

log = logging.getLogger(__name__)


class InspectionEngine:
    """
    Catalog + sample table + pass/fail policy, bound together.

    Holds no inspection state of its own; every call takes the Inspection it
    acts on, and scoring is recomputed from the ledger each time.
    """

    def __init__(
        self,
        catalog: Catalog,
        resolver: Optional[SampleSizeResolver] = None,
        policy: Optional[ScoringPolicy] = None,
    ) -> None:
        self.catalog = catalog
        self.resolver = resolver or SampleSizeResolver()
        self.policy = policy or ScoringPolicy()

    @classmethod
    def from_settings(cls, s=None, catalog: Optional[Catalog] = None) -> "InspectionEngine":
        if s is None:
            from ..config import settings as s
        if catalog is None:
            from ..services.catalog_loader import load_catalog

            catalog = load_catalog(s.catalog_path)
        return cls(
            catalog,
            resolver=SampleSizeResolver.from_settings(s),
            policy=ScoringPolicy.from_settings(s),
        )

    def start_inspection(
        self,
        total_units: int,
        *,
        property_name: str = "",
        year_built: Optional[int] = None,
    ) -> Inspection:
        sample_size = self.resolver.resolve(total_units)
        insp = Inspection(
            total_unit_count=int(total_units),
            sample_size=sample_size,
            property_name=(property_name or "").strip(),
            year_built=year_built,
            catalog_version=self.catalog.version,
        )
        log.info(
            "inspection started: %s units, sampling %s",
            insp.total_unit_count,
            insp.sample_size,
            extra={"catalog_version": self.catalog.version},
        )
        return insp

    def lookup(self, key: ObservationKey) -> ResolvedDefect:
        return self.catalog.resolve(key)

    def record_occurrence(self, inspection: Inspection, key: ObservationKey, delta: int = 1) -> int:
        # Fail at capture time instead of at scoring time.
        self.catalog.resolve(key)
        return inspection.record_occurrence(key, delta)

    def set_note(self, inspection: Inspection, key: ObservationKey, text: Optional[str]) -> None:
        self.catalog.resolve(key)
        inspection.set_note(key, text)

    def score(self, inspection: Inspection) -> ScoreReport:
        return score_inspection(inspection, self.catalog, self.policy)

    def report(self, inspection: Inspection, *, severity: Optional[Severity] = None) -> InspectionReport:
        return build_report(inspection, self.catalog, self.policy, severity=severity)

    def complete(self, inspection: Inspection) -> ScoreReport:
        """Freeze the inspection and return the score it was frozen with."""
        result = self.score(inspection)
        inspection.complete()
        return result
