from .catalog import Catalog, CatalogCategory, CatalogItem, DefectDefinition
from .engine import InspectionEngine
from .errors import (
    DanglingDefectReference,
    InspectionEngineError,
    InspectionLocked,
    InvalidCatalog,
    InvalidInspectionDocument,
    InvalidPopulationSize,
    InvalidSampleSizeTable,
    ScopeOutOfRange,
)
from .keys import ObservationKey, Scope, Severity
from .ledger import Inspection, InspectionStatus, ObservationLedger
from .report import InspectionReport, build_report
from .sampling import SampleSizeResolver, resolve_sample_size
from .scoring import ScoreReport, ScoringPolicy, compute_score, score_inspection

__all__ = [
    "Catalog",
    "CatalogCategory",
    "CatalogItem",
    "DefectDefinition",
    "InspectionEngine",
    "DanglingDefectReference",
    "InspectionEngineError",
    "InspectionLocked",
    "InvalidCatalog",
    "InvalidInspectionDocument",
    "InvalidPopulationSize",
    "InvalidSampleSizeTable",
    "ScopeOutOfRange",
    "ObservationKey",
    "Scope",
    "Severity",
    "Inspection",
    "InspectionStatus",
    "ObservationLedger",
    "InspectionReport",
    "build_report",
    "SampleSizeResolver",
    "resolve_sample_size",
    "ScoreReport",
    "ScoringPolicy",
    "compute_score",
    "score_inspection",
]
