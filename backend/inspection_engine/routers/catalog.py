# backend/inspection_engine/routers/catalog.py
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..domain.engine import InspectionEngine
from ..domain.keys import Scope
from ..schemas import SampleSizeOut
from ..services.engine_provider import get_engine

router = APIRouter(tags=["catalog"])


@router.get("/health", response_model=dict)
def health(engine: InspectionEngine = Depends(get_engine)) -> dict[str, Any]:
    return {"ok": True, "catalog_version": engine.catalog.version}


@router.get("/catalog", response_model=dict)
def get_catalog(
    scope: Optional[str] = Query(default=None, description='"common" or "unit-<n>" to narrow by area'),
    engine: InspectionEngine = Depends(get_engine),
) -> dict[str, Any]:
    structure = engine.catalog.structure()
    if scope is None:
        wanted = list(range(len(structure)))
    else:
        try:
            parsed = Scope.parse(scope)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        wanted = [i for i, _c in engine.catalog.categories_for(parsed)]

    return {
        "version": engine.catalog.version,
        "categories": [{"index": i, **structure[i]} for i in wanted],
    }


@router.get("/sample-size", response_model=SampleSizeOut)
def sample_size(
    total_units: int = Query(...),
    engine: InspectionEngine = Depends(get_engine),
) -> SampleSizeOut:
    return SampleSizeOut(total_units=total_units, sample_size=engine.resolver.resolve(total_units))
