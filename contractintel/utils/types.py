from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class PageText:
    page_number: int  # 1-based
    text: str


@dataclass(frozen=True)
class ExtractedDocument:
    full_text: str = ""
    pages: Tuple[PageText, ...] = ()

    @property
    def page_count(self) -> int:
        return len(self.pages)


@dataclass(frozen=True)
class DetectedClause:
    clause_type: str
    excerpt: str
    confidence: Decimal
    page_number: Optional[int] = None


@dataclass(frozen=True)
class ClauseRecord:
    id: str
    contract_id: str
    document_id: Optional[str]
    clause_type: str
    excerpt: str
    confidence: Optional[Decimal]
    page_number: Optional[int]
    extracted_at: datetime
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None


@dataclass(frozen=True)
class DocumentRef:
    id: str
    file_name: str
    file_path: str
    uploaded_at: datetime


@dataclass(frozen=True)
class ContractSnapshot:
    id: str
    title: str
    vendor: str
    risk_score: Optional[Decimal] = None
    documents: Tuple[DocumentRef, ...] = ()
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    renewal_date: Optional[date] = None

    def latest_document(self) -> Optional[DocumentRef]:
        if not self.documents:
            return None
        return max(self.documents, key=lambda d: d.uploaded_at)


@dataclass(frozen=True)
class ExtractionSummary:
    contract_id: str
    document_id: str
    page_count: int
    total_clauses: int
    risk_score: Decimal
    clauses_by_type: Dict[str, int] = field(default_factory=dict)
