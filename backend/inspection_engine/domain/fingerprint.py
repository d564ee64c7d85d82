from __future__ import annotations

import hashlib
import json
from typing import Any

FINGERPRINT_LEN = 16


def fingerprint(*parts: Any, length: int = FINGERPRINT_LEN) -> str:
    """
    Short deterministic digest of JSON-serializable content.
    Used as the catalog version stamped on inspections at start.
    """
    blob = json.dumps(parts, sort_keys=True, default=str, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()[: max(8, int(length))]
