from __future__ import annotations
from collections import Counter
from typing import Callable, List, Optional, Sequence
from contractintel.analysis.clauses import detect_clauses
from contractintel.analysis.risk import calculate_risk_score
from contractintel.ingest.pdf_loader import extract_text_from_stream
from contractintel.pipeline.observer import LoggingObserver, PipelineObserver
from contractintel.utils.config import RiskScoringOptions
from contractintel.utils.exception import (
    ContractIntelError,
    EmptyExtractionError,
    ExtractionFailedError,
    FileMissingError,
    NoDocumentError,
    NotFoundError,
    raise_if_cancelled,
)
from contractintel.utils.types import DetectedClause, DocumentRef, ExtractedDocument, ExtractionSummary, PageText


class ContractExtractionPipeline:
    """Runs extract -> detect -> score -> atomic clause replacement for one contract.

    `repository` needs get_contract / replace_clauses and `storage` needs
    file_exists / open_file. Extractor and detector are injectable so tests and
    alternative front ends can swap them without touching control flow.
    """

    def __init__(
        self,
        repository,
        storage,
        options: Optional[RiskScoringOptions] = None,
        observer: Optional[PipelineObserver] = None,
        extractor: Callable[..., ExtractedDocument] = extract_text_from_stream,
        detector: Callable[..., List[DetectedClause]] = detect_clauses,
    ):
        self.repository = repository
        self.storage = storage
        self.options = options or RiskScoringOptions()
        self.observer = observer or LoggingObserver()
        self.extractor = extractor
        self.detector = detector

    def process_contract(self, contract_id: str, cancel_event=None) -> ExtractionSummary:
        stage = "load_contract"
        try:
            self.observer.stage(contract_id, stage)
            contract = self.repository.get_contract(contract_id)
            if contract is None:
                raise NotFoundError(f"Contract {contract_id} not found.")

            stage = "locate_document"
            document = contract.latest_document()
            if document is None:
                raise NoDocumentError(f"No documents found for contract {contract_id}.")
            self.observer.stage(contract_id, stage, document_id=document.id, file_name=document.file_name)

            stage = "verify_file"
            if not self.storage.file_exists(document.file_path):
                raise FileMissingError(f"File not found: {document.file_path}")

            stage = "extract_text"
            extracted = self._extract(document, cancel_event)
            self.observer.stage(contract_id, stage, chars=len(extracted.full_text), pages=extracted.page_count)

            stage = "detect_clauses"
            raise_if_cancelled(cancel_event, "before clause detection")
            clauses = self.detector(extracted.full_text, extracted.pages)
            self.observer.stage(contract_id, stage, clauses=len(clauses))

            stage = "replace_clauses"
            raise_if_cancelled(cancel_event, "before committing clauses")
            risk_score = calculate_risk_score(clauses, self.options)
            self.repository.replace_clauses(contract_id, document.id, clauses, risk_score, cancel_event=cancel_event)
            self.observer.stage(contract_id, stage, risk_score=risk_score)

            stage = "summarize"
            summary = build_summary(contract_id, document.id, extracted.pages, clauses, risk_score)
            self.observer.stage(contract_id, stage, total_clauses=summary.total_clauses)
            return summary
        except Exception as e:
            self.observer.failed(contract_id, stage, e)
            raise

    def _extract(self, document: DocumentRef, cancel_event) -> ExtractedDocument:
        try:
            with self.storage.open_file(document.file_path) as stream:
                extracted = self.extractor(stream, cancel_event=cancel_event)
        except ContractIntelError:
            raise
        except Exception as e:
            raise ExtractionFailedError(f"Failed to extract text from document: {e}") from e
        if not extracted.full_text or not extracted.full_text.strip():
            raise EmptyExtractionError(
                f"No text extracted from document {document.file_name}. "
                "File may be empty, corrupted, or an image-based PDF."
            )
        return extracted


def build_summary(
    contract_id: str,
    document_id: str,
    pages: Sequence[PageText],
    clauses: Sequence[DetectedClause],
    risk_score,
) -> ExtractionSummary:
    return ExtractionSummary(
        contract_id=contract_id,
        document_id=document_id,
        page_count=len(pages),
        total_clauses=len(clauses),
        risk_score=risk_score,
        clauses_by_type=dict(Counter(c.clause_type for c in clauses)),
    )
