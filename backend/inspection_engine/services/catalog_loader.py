# backend/inspection_engine/services/catalog_loader.py
from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from ..domain.catalog import Catalog, CatalogCategory, CatalogItem, DefectDefinition
from ..domain.errors import InvalidCatalog
from ..domain.keys import Severity
from ..schemas import CatalogDocument

log = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[1] / "data" / "default_catalog.json"


def catalog_from_document(doc: CatalogDocument) -> Catalog:
    categories: list[CatalogCategory] = []
    for c in doc.categories:
        items: list[CatalogItem] = []
        for it in c.items:
            by_sev: dict[Severity, tuple[DefectDefinition, ...]] = {}
            # Keep tiers in low -> moderate -> severe order regardless of input order.
            for sev in Severity:
                defects = it.defects.get(sev)
                if not defects:
                    continue
                by_sev[sev] = tuple(
                    DefectDefinition(
                        description=d.description,
                        weight=d.weight,
                        life_threatening=bool(d.life_threatening),
                    )
                    for d in defects
                )
            items.append(
                CatalogItem(
                    name=it.name,
                    requirement=it.requirement,
                    education=it.education,
                    defects_by_severity=by_sev,
                )
            )
        categories.append(CatalogCategory(name=c.name, items=tuple(items), area=c.area))
    return Catalog(categories)


def parse_catalog(data: Any) -> Catalog:
    """
    Build a Catalog from already-decoded JSON.
    Accepts {"categories": [...]} or the sectioned {"outside": [...], "inside": [...]}.
    """
    try:
        doc = CatalogDocument.model_validate(data)
    except ValidationError as e:
        raise InvalidCatalog(f"catalog document is invalid: {e.error_count()} error(s)\n{e}") from e
    return catalog_from_document(doc)


def load_catalog_file(path: Path | str) -> Catalog:
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise InvalidCatalog(f"catalog file not found: {p}") from e
    except json.JSONDecodeError as e:
        raise InvalidCatalog(f"catalog file {p} is not valid JSON: {e}") from e

    catalog = parse_catalog(raw)
    log.info("catalog loaded from %s", p, extra={"catalog_version": catalog.version})
    return catalog


@lru_cache(maxsize=8)
def _load_cached(path: str) -> Catalog:
    return load_catalog_file(path)


def load_catalog(path: Optional[str] = None) -> Catalog:
    """Catalog at `path`, or the bundled sample catalog. Cached per path."""
    return _load_cached(str(Path(path).resolve()) if path else str(DEFAULT_CATALOG_PATH))
