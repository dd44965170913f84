from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence
import re
from contractintel.utils.logger import logger
from contractintel.utils.types import DetectedClause, PageText

EXCERPT_LENGTH = 200
ELLIPSIS = "..."


@dataclass(frozen=True)
class ClausePattern:
    clause_type: str
    regex: re.Pattern
    confidence: Decimal


def _rx(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE | re.MULTILINE)


# Catalog order is the output order.
CLAUSE_PATTERNS: Sequence[ClausePattern] = (
    ClausePattern(
        "renewal",
        _rx(r"\b(?:renew|renewal|extend|extension)\s+(?:term|period|clause|provision|agreement|contract)\b"),
        Decimal("0.75"),
    ),
    ClausePattern(
        "auto_renewal",
        _rx(r"\b(?:auto(?:matic(?:ally)?)?[\s-]*(?:renew|renewal|extend)"
            r"|renew\s+automatic(?:ally)?"
            r"|automatic(?:ally)?\s+(?:renew|renewal))\b"),
        Decimal("0.80"),
    ),
    ClausePattern(
        "termination",
        _rx(r"\b(?:terminat(?:e|ion)|cancel(?:lation)?|end(?:ing)?)\s+(?:clause|provision|notice|period|rights?|agreement|contract)\b"
            r"|\b(?:notice\s+period|termination\s+notice)\s*[:\-]?\s*\d+\s*(?:days?|months?|weeks?)\b"),
        Decimal("0.75"),
    ),
    ClausePattern(
        "data_protection",
        _rx(r"\b(?:data\s+protection|privacy|GDPR|personal\s+data|confidential\s+information|data\s+security|information\s+security)"
            r"\s+(?:clause|provision|requirements?|obligations?|act|law|regulation)\b"),
        Decimal("0.70"),
    ),
    ClausePattern(
        "liability_cap",
        _rx(r"\b(?:liabilit(?:y|ies)|indemnit(?:y|ies))\s+(?:cap|limit(?:ation)?|ceiling|maximum)\b"
            r"|\b(?:cap|limit)\s+(?:on|of)\s+(?:liabilit(?:y|ies)|indemnit(?:y|ies))\b"
            r"|\bliabilit(?:y|ies)\s+shall\s+(?:not\s+)?exceed\b"),
        Decimal("0.80"),
    ),
    ClausePattern(
        "governing_law",
        _rx(r"\b(?:govern(?:ing|ed)\s+(?:by|under)|subject\s+to|construed\s+in\s+accordance\s+with)\s+(?:the\s+)?(?:laws?|jurisdiction)\s+(?:of|in)\b"
            r"|\b(?:jurisdiction|venue)\s+clause\b"),
        Decimal("0.75"),
    ),
)


def extract_excerpt(text: str, match_start: int, match_end: int, window: int = EXCERPT_LENGTH) -> str:
    """Window of `window // 2` chars either side of the match, with ellipses marking clipped sides."""
    half = window // 2
    start = max(0, match_start - half)
    end = min(len(text), match_end + half)
    excerpt = text[start:end].strip()
    if start > 0:
        excerpt = ELLIPSIS + excerpt
    if end < len(text):
        excerpt = excerpt + ELLIPSIS
    return excerpt


def find_page_number(excerpt: str, pages: Optional[Sequence[PageText]]) -> Optional[int]:
    """Best-effort page attribution: first page containing the de-ellipsized excerpt.

    Excerpts that straddle a page break (or whose inner text was normalized
    differently from the page text) are not found and stay unattributed.
    """
    if not pages:
        return None
    needle = excerpt.strip(".").lower()
    for page in pages:
        if needle in page.text.lower():
            return page.page_number
    return None


def detect_clauses(
    full_text: Optional[str],
    pages: Optional[Sequence[PageText]] = None,
    patterns: Sequence[ClausePattern] = CLAUSE_PATTERNS,
) -> List[DetectedClause]:
    if not full_text or not full_text.strip():
        return []
    try:
        results: List[DetectedClause] = []
        for pattern in patterns:
            for m in pattern.regex.finditer(full_text):
                excerpt = extract_excerpt(full_text, m.start(), m.end())
                results.append(DetectedClause(
                    clause_type=pattern.clause_type,
                    excerpt=excerpt,
                    confidence=pattern.confidence,
                    page_number=find_page_number(excerpt, pages),
                ))
        logger.info("Detected %d clauses in %d chars of text", len(results), len(full_text))
        return results
    except Exception:
        logger.exception("Error detecting clauses; returning no clauses")
        return []


def sort_for_display(clauses: Iterable[DetectedClause]) -> List[DetectedClause]:
    # unattributed clauses sort after every numbered page
    return sorted(clauses, key=lambda c: (c.page_number is None, c.page_number or 0, c.clause_type))
