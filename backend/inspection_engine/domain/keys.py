# backend/inspection_engine/domain/keys.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .errors import ScopeOutOfRange


class Severity(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    @classmethod
    def parse(cls, raw: Any) -> "Severity":
        if isinstance(raw, Severity):
            return raw
        s = str(raw or "").strip().lower()
        try:
            return cls(s)
        except ValueError:
            raise ValueError(f"unknown severity tier: {raw!r}") from None


_SEVERITY_ORDER = (Severity.LOW, Severity.MODERATE, Severity.SEVERE)


@dataclass(frozen=True)
class Scope:
    """
    Where an observation was made.

      - Scope.common()  -> outside / shared areas, inspected once
      - Scope.of_unit(n) -> n-th *sampled* unit (1-based), not a unit number
                           from the full population
    """

    unit: Optional[int] = None

    def __post_init__(self) -> None:
        if self.unit is None:
            return
        if isinstance(self.unit, bool) or not isinstance(self.unit, int) or self.unit < 1:
            raise ScopeOutOfRange(self.unit)

    @classmethod
    def common(cls) -> "Scope":
        return cls(None)

    @classmethod
    def of_unit(cls, n: int) -> "Scope":
        return cls(n)

    @property
    def is_common(self) -> bool:
        return self.unit is None

    @property
    def label(self) -> str:
        return "Common Area" if self.unit is None else f"Unit {self.unit}"

    def sort_key(self) -> tuple[int, int]:
        return (0, 0) if self.unit is None else (1, self.unit)

    def to_token(self) -> str:
        return "common" if self.unit is None else f"unit-{self.unit}"

    @classmethod
    def parse(cls, raw: Any) -> "Scope":
        """
        Accepts:
          - Scope instances
          - "common" / "outside"
          - "unit-3" / "unit:3" / "3" / 3
        """
        if isinstance(raw, Scope):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            return cls(raw)

        s = str(raw or "").strip().lower()
        if s in ("common", "outside"):
            return cls(None)
        for prefix in ("unit-", "unit:", "unit "):
            if s.startswith(prefix):
                s = s[len(prefix):]
                break
        try:
            n = int(s)
        except ValueError:
            raise ValueError(f"unrecognized scope: {raw!r}") from None
        return cls(n)

    def __str__(self) -> str:
        return self.to_token()


@dataclass(frozen=True)
class ObservationKey:
    """
    Stable composite address of one defect at one scope.

    Indexes point into the catalog hierarchy (category -> item -> severity tier
    -> defect). Catalog text is never part of the key.
    """

    scope: Scope
    category: int
    item: int
    severity: Severity
    defect: int

    def __post_init__(self) -> None:
        if not isinstance(self.severity, Severity):
            object.__setattr__(self, "severity", Severity.parse(self.severity))
        for name in ("category", "item", "defect"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, int):
                raise TypeError(f"{name} index must be an int, got {v!r}")

    @classmethod
    def build(
        cls,
        scope: Any,
        category: int,
        item: int,
        severity: Any,
        defect: int,
    ) -> "ObservationKey":
        return cls(Scope.parse(scope), int(category), int(item), Severity.parse(severity), int(defect))

    def sort_key(self) -> tuple:
        return (self.scope.sort_key(), self.category, self.item, self.severity.rank, self.defect)

    def __lt__(self, other: "ObservationKey") -> bool:
        if not isinstance(other, ObservationKey):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return f"{self.scope}/{self.category}.{self.item}.{self.severity.value}.{self.defect}"
