# backend/inspection_engine/domain/catalog.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from .errors import DanglingDefectReference, InvalidCatalog
from .fingerprint import fingerprint
from .keys import ObservationKey, Scope, Severity

log = logging.getLogger(__name__)

AREAS = ("outside", "inside")


@dataclass(frozen=True)
class DefectDefinition:
    description: str
    weight: Decimal
    life_threatening: bool = False


@dataclass(frozen=True)
class CatalogItem:
    name: str
    requirement: str = ""
    education: str = ""
    defects_by_severity: Mapping[Severity, tuple[DefectDefinition, ...]] = field(default_factory=dict)

    def defects(self, severity: Severity) -> tuple[DefectDefinition, ...]:
        return tuple(self.defects_by_severity.get(severity, ()))


@dataclass(frozen=True)
class CatalogCategory:
    name: str
    items: tuple[CatalogItem, ...] = ()
    # "outside" categories are inspected once (common scope), "inside" per unit.
    area: Optional[str] = None


@dataclass(frozen=True)
class ResolvedDefect:
    category: CatalogCategory
    item: CatalogItem
    severity: Severity
    defect: DefectDefinition


def _check_index(key: ObservationKey, idx: int, size: int, what: str) -> None:
    if idx < 0 or idx >= size:
        raise DanglingDefectReference(key, f"{what} index {idx} out of range (0..{size - 1})")


class Catalog:
    """
    Read-only defect reference, addressed positionally by ObservationKey.

    Reordering categories, items or a severity tier's defects invalidates keys
    recorded against an earlier version; `version` lets callers detect that.
    """

    def __init__(self, categories: Iterable[CatalogCategory]) -> None:
        self._categories: tuple[CatalogCategory, ...] = tuple(categories)
        _validate(self._categories)
        self._version = fingerprint(self.structure())

    @property
    def categories(self) -> tuple[CatalogCategory, ...]:
        return self._categories

    @property
    def version(self) -> str:
        return self._version

    def __len__(self) -> int:
        return len(self._categories)

    def categories_for(self, scope: Scope) -> list[tuple[int, CatalogCategory]]:
        """
        Categories an inspector walks through at the given scope, with their
        catalog indexes. Categories without an area show up everywhere.
        """
        want = "outside" if scope.is_common else "inside"
        return [(i, c) for i, c in enumerate(self._categories) if c.area in (None, want)]

    def resolve(self, key: ObservationKey) -> ResolvedDefect:
        cats = self._categories
        _check_index(key, key.category, len(cats), "category")
        cat = cats[key.category]

        _check_index(key, key.item, len(cat.items), "item")
        item = cat.items[key.item]

        tier = item.defects(key.severity)
        if not tier:
            raise DanglingDefectReference(key, f"item {item.name!r} has no {key.severity.value} defects")
        _check_index(key, key.defect, len(tier), "defect")

        return ResolvedDefect(category=cat, item=item, severity=key.severity, defect=tier[key.defect])

    def weight(self, key: ObservationKey) -> Decimal:
        return self.resolve(key).defect.weight

    def structure(self) -> list:
        """Plain nested structure of the catalog (used for fingerprinting / export)."""
        out = []
        for c in self._categories:
            items = []
            for it in c.items:
                items.append(
                    {
                        "name": it.name,
                        "defects": {
                            sev.value: [
                                [d.description, str(d.weight), bool(d.life_threatening)]
                                for d in it.defects(sev)
                            ]
                            for sev in Severity
                            if it.defects(sev)
                        },
                    }
                )
            out.append({"name": c.name, "area": c.area, "items": items})
        return out


def _validate(categories: tuple[CatalogCategory, ...]) -> None:
    if not categories:
        raise InvalidCatalog("catalog has no categories")

    for ci, cat in enumerate(categories):
        if not (cat.name or "").strip():
            raise InvalidCatalog(f"category #{ci} has no name")
        if cat.area is not None and cat.area not in AREAS:
            raise InvalidCatalog(f"category {cat.name!r}: unknown area {cat.area!r}")

        for ii, item in enumerate(cat.items):
            if not (item.name or "").strip():
                raise InvalidCatalog(f"category {cat.name!r}: item #{ii} has no name")

            for sev, tier in item.defects_by_severity.items():
                if not isinstance(sev, Severity):
                    raise InvalidCatalog(f"item {item.name!r}: severity key {sev!r} is not a Severity")
                for di, d in enumerate(tier):
                    if not isinstance(d.weight, Decimal) or not d.weight.is_finite():
                        raise InvalidCatalog(f"item {item.name!r}: {sev.value} defect #{di} has invalid weight")
                    if d.weight < 0:
                        raise InvalidCatalog(
                            f"item {item.name!r}: {sev.value} defect #{di} has negative weight {d.weight}"
                        )

    log.debug("catalog validated", extra={"categories": len(categories)})
