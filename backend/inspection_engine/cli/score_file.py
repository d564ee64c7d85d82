from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from ..domain.engine import InspectionEngine
from ..domain.errors import InvalidInspectionDocument
from ..domain.keys import Severity
from ..services.inspection_documents import load_inspection


def report_for_file(
    path: Path | str,
    *,
    engine: Optional[InspectionEngine] = None,
    severity: Optional[Severity] = None,
) -> dict[str, Any]:
    """Score an exported inspection document and return the report dict."""
    engine = engine or InspectionEngine.from_settings()
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise InvalidInspectionDocument(f"cannot read inspection file {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise InvalidInspectionDocument(f"inspection file {p} is not valid JSON: {e}") from e

    try:
        insp = load_inspection(data)
    except ValidationError as e:
        raise InvalidInspectionDocument(f"inspection file {p} is invalid: {e.error_count()} error(s)\n{e}") from e
    return engine.report(insp, severity=severity).as_dict()
