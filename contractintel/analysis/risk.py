from __future__ import annotations
from decimal import Decimal
from typing import Iterable, List, Optional
import re
from contractintel.utils.config import RiskScoringOptions
from contractintel.utils.logger import logger

NOTICE_PERIOD_RE = re.compile(r"(\d+)[\s-]*days?\s+notice", re.I)
AUTO_RENEWAL = "auto_renewal"

MIN_SCORE = Decimal(0)
MAX_SCORE = Decimal(100)


def _present_types(clauses) -> set:
    return {c.clause_type.lower() for c in clauses}


def missing_required_clause_types(clauses: Iterable, options: Optional[RiskScoringOptions] = None) -> List[str]:
    options = options or RiskScoringOptions()
    present = _present_types(clauses)
    return [t for t in options.required_clause_types if t.lower() not in present]


def has_short_notice_period(excerpt: str, short_notice_days: int) -> bool:
    """True when the excerpt states "<N> days notice" with N below the threshold.

    No stated notice period counts as not short.
    """
    m = NOTICE_PERIOD_RE.search(excerpt or "")
    if not m:
        return False
    return int(m.group(1)) < short_notice_days


def calculate_risk_score(clauses: Iterable, options: Optional[RiskScoringOptions] = None) -> Decimal:
    """Rule-based 0-100 risk score.

    Accepts anything exposing `clause_type` and `excerpt` (detected clauses or
    stored clause records). Each missing required type adds the missing-clause
    weight; the first auto-renewal clause with a short notice period adds the
    short-notice weight once. The total is clamped to [0, 100].
    """
    options = options or RiskScoringOptions()
    clause_list = list(clauses)
    score = Decimal(0)

    missing = missing_required_clause_types(clause_list, options)
    if missing:
        penalty = len(missing) * options.missing_required_clause_weight
        score += penalty
        logger.debug("Missing required clauses: %s. Penalty: %s", ", ".join(missing), penalty)

    auto_renewal = next((c for c in clause_list if c.clause_type.lower() == AUTO_RENEWAL), None)
    if auto_renewal is not None and has_short_notice_period(auto_renewal.excerpt, options.short_notice_days):
        score += options.auto_renew_short_notice_weight
        logger.debug("Auto-renewal with short notice period. Penalty: %s", options.auto_renew_short_notice_weight)

    normalized = min(MAX_SCORE, max(MIN_SCORE, score))
    logger.info("Calculated risk score %s for %d clauses", normalized, len(clause_list))
    return normalized
