"""Lightweight health check for the extraction pipeline.

Touches no files and no configured database: imports, a detection + scoring
run on a fixed sentence, and table creation in an in-memory SQLite database.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Any, List


@dataclass
class HealthStatus:
    component: str
    ok: bool
    detail: str

    def as_dict(self) -> Dict[str, Any]:
        return {"component": self.component, "ok": self.ok, "detail": self.detail}


def _check_import(module: str) -> HealthStatus:
    try:
        __import__(module)
        return HealthStatus(module, True, "import ok")
    except Exception as e:  # pragma: no cover - diagnostic path
        return HealthStatus(module, False, f"import failed: {e}")


CORE_IMPORTS = [
    "pypdf",
    "sqlalchemy",
    "dotenv",
]

SAMPLE_TEXT = "This agreement shall be governed by the laws of Delaware. The liability cap is $1,000,000."


def _check_detection() -> HealthStatus:
    try:
        from contractintel.analysis.clauses import detect_clauses
        from contractintel.analysis.risk import calculate_risk_score

        found = detect_clauses(SAMPLE_TEXT)
        score = calculate_risk_score(found)
        types = sorted({c.clause_type for c in found})
        ok = types == ["governing_law", "liability_cap"]
        return HealthStatus("detection", ok, f"types={types} score={score}")
    except Exception as e:  # pragma: no cover - diagnostic path
        return HealthStatus("detection", False, f"detection failed: {e}")


def _check_database() -> HealthStatus:
    try:
        from sqlalchemy import inspect
        from contractintel.storage.db import make_engine, init_db

        engine = make_engine("sqlite://")
        init_db(engine)
        tables = set(inspect(engine).get_table_names())
        engine.dispose()
        ok = {"contracts", "documents", "clauses"} <= tables
        return HealthStatus("database", ok, f"tables={sorted(tables)}")
    except Exception as e:  # pragma: no cover - diagnostic path
        return HealthStatus("database", False, f"database check failed: {e}")


def run_health_check() -> Dict[str, Any]:
    results: List[HealthStatus] = [_check_import(mod) for mod in CORE_IMPORTS]
    results.append(_check_detection())
    results.append(_check_database())
    return {
        "ok": all(r.ok for r in results),
        "components": [r.as_dict() for r in results],
    }


if __name__ == "__main__":  # Manual invocation helper
    import json, sys
    report = run_health_check()
    print(json.dumps(report, indent=2))
    sys.exit(0 if report["ok"] else 1)
