# backend/inspection_engine/domain/errors.py
from __future__ import annotations

from typing import Any, Optional


class InspectionEngineError(Exception):
    """Base class for every fault raised by the inspection engine."""


class InvalidPopulationSize(InspectionEngineError, ValueError):
    """
    Raised when a unit population or sample size cannot be used:
      - total units <= 0 handed to the resolver
      - sample size <= 0 reaching the extrapolation step
    """

    def __init__(self, value: Any, *, field: str = "total_units") -> None:
        self.value = value
        self.field = field
        super().__init__(f"{field} must be a positive integer, got {value!r}")


class InvalidSampleSizeTable(InspectionEngineError, ValueError):
    pass


class InvalidCatalog(InspectionEngineError, ValueError):
    pass


class InvalidInspectionDocument(InspectionEngineError, ValueError):
    """An exported inspection file could not be read or does not validate."""


class DanglingDefectReference(InspectionEngineError, LookupError):
    """
    An observation key does not resolve in the current catalog.

    Usually means the catalog was edited (reordered, items removed) after the
    observations were recorded.
    """

    def __init__(self, key: Any, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"{reason} (key={key})")


class ScopeOutOfRange(InspectionEngineError, ValueError):
    def __init__(self, unit: Any, sample_size: Optional[int] = None) -> None:
        self.unit = unit
        self.sample_size = sample_size
        if sample_size is None:
            msg = f"unit index must be a positive integer, got {unit!r}"
        else:
            msg = f"unit {unit} is outside the sampled range 1..{sample_size}"
        super().__init__(msg)


class InspectionLocked(InspectionEngineError):
    """Mutation attempted on an inspection that was already marked complete."""
