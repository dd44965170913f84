from __future__ import annotations
import json
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional
from contractintel.utils.types import ExtractionSummary


def _num(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def build_summary_json(
    summary: ExtractionSummary,
    clauses: Iterable = (),
    meta: Optional[Dict[str, Any]] = None,
) -> str:
    """Return a JSON snapshot of one extraction run.

    `clauses` may be detected clauses or stored clause records; only the
    shared fields are exported.
    """
    payload = {
        "meta": meta or {},
        "contract_id": summary.contract_id,
        "document_id": summary.document_id,
        "page_count": summary.page_count,
        "total_clauses": summary.total_clauses,
        "clauses_by_type": summary.clauses_by_type,
        "risk_score": _num(summary.risk_score),
        "clauses": [
            {
                "type": c.clause_type,
                "confidence": _num(c.confidence),
                "page": c.page_number,
                "excerpt": c.excerpt,
            } for c in clauses
        ],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)
