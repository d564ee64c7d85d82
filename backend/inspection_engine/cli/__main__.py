# backend/inspection_engine/cli/__main__.py
from __future__ import annotations

import argparse
import json
import sys

from ..domain.engine import InspectionEngine
from ..domain.errors import InspectionEngineError
from ..domain.keys import Severity
from ..logging_config import configure_logging
from .score_file import report_for_file


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="inspection-engine")
    sub = p.add_subparsers(dest="command", required=True)

    ss = sub.add_parser("sample-size", help="units to inspect for a property")
    ss.add_argument("total_units", type=int)

    rp = sub.add_parser("report", help="score an exported inspection JSON document")
    rp.add_argument("path")
    rp.add_argument("--severity", choices=[s.value for s in Severity], default=None)
    rp.add_argument("--score-only", action="store_true")

    args = p.parse_args(argv)
    # stdout carries the JSON result
    configure_logging(sys.stderr)
    try:
        engine = InspectionEngine.from_settings()
        if args.command == "sample-size":
            out = {"total_units": args.total_units, "sample_size": engine.resolver.resolve(args.total_units)}
        else:
            sev = Severity(args.severity) if args.severity else None
            out = report_for_file(args.path, engine=engine, severity=sev)
            if args.score_only:
                out = out["score"]
    except InspectionEngineError as e:
        print(json.dumps({"ok": False, "error": type(e).__name__, "detail": str(e)}), file=sys.stderr)
        return 2

    print(json.dumps(out, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
