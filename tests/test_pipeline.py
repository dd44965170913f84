import logging
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
import pytest
from contractintel.analysis.clauses import detect_clauses
from contractintel.pipeline.extraction import ContractExtractionPipeline
from contractintel.pipeline.observer import LoggingObserver, PipelineObserver
from contractintel.utils.exception import (
    EmptyExtractionError,
    ExtractionFailedError,
    FileMissingError,
    NoDocumentError,
    NotFoundError,
    PipelineCancelledError,
)
from contractintel.utils.types import DetectedClause

LATEST_PAGES = ["This agreement shall be governed by the laws of Delaware.", "The liability cap is $1,000,000."]
OLDER_PAGES = ["The renewal term is one year."]
BASE = datetime(2024, 3, 1, tzinfo=timezone.utc)


class RecordingObserver(PipelineObserver):
    def __init__(self):
        self.stages = []
        self.failures = []

    def stage(self, contract_id, stage, **details):
        self.stages.append(stage)

    def failed(self, contract_id, stage, error):
        self.failures.append((stage, error))


def upload(repository, storage, contract_id, pdf_path, days=0):
    with open(pdf_path, "rb") as fh:
        rel = storage.save_file(contract_id, pdf_path.name, fh)
    return repository.add_document(contract_id, pdf_path.name, rel, uploaded_at=BASE + timedelta(days=days))


def seed_prior(repository, contract_id):
    repository.replace_clauses(
        contract_id, None, [DetectedClause("renewal", "prior excerpt", Decimal("0.75"))], Decimal(60)
    )


@pytest.fixture
def contract(repository):
    return repository.create_contract("Hosting Agreement", "Globex")


def test_happy_path_uses_latest_document(repository, storage, make_pdf, contract):
    upload(repository, storage, contract.id, make_pdf(OLDER_PAGES), days=0)
    latest = upload(repository, storage, contract.id, make_pdf(LATEST_PAGES), days=1)
    observer = RecordingObserver()
    pipeline = ContractExtractionPipeline(repository, storage, observer=observer)

    summary = pipeline.process_contract(contract.id)

    assert summary.contract_id == contract.id
    assert summary.document_id == latest.id
    assert summary.page_count == 2
    assert summary.total_clauses == 2
    assert summary.clauses_by_type == {"governing_law": 1, "liability_cap": 1}
    assert summary.risk_score == Decimal(45)  # renewal, termination and data_protection missing

    stored = repository.list_clauses(contract.id)
    assert [c.clause_type for c in stored] == ["governing_law", "liability_cap"]
    assert {c.document_id for c in stored} == {latest.id}
    assert repository.get_contract(contract.id).risk_score == Decimal(45)
    assert observer.stages == [
        "load_contract", "locate_document", "extract_text", "detect_clauses", "replace_clauses", "summarize",
    ]
    assert observer.failures == []


def test_rerun_replaces_previous_results(repository, storage, make_pdf, contract):
    upload(repository, storage, contract.id, make_pdf(OLDER_PAGES))
    pipeline = ContractExtractionPipeline(repository, storage)
    pipeline.process_contract(contract.id)
    assert [c.clause_type for c in repository.list_clauses(contract.id)] == ["renewal"]

    upload(repository, storage, contract.id, make_pdf(LATEST_PAGES), days=1)
    pipeline.process_contract(contract.id)
    assert [c.clause_type for c in repository.list_clauses(contract.id)] == ["governing_law", "liability_cap"]


def test_unknown_contract(repository, storage):
    observer = RecordingObserver()
    with pytest.raises(NotFoundError):
        ContractExtractionPipeline(repository, storage, observer=observer).process_contract("missing")
    assert observer.failures[0][0] == "load_contract"


def test_contract_without_documents(repository, storage, contract):
    with pytest.raises(NoDocumentError):
        ContractExtractionPipeline(repository, storage).process_contract(contract.id)


def test_document_file_missing_from_storage(repository, storage, contract):
    repository.add_document(contract.id, "gone.pdf", f"{contract.id}/gone.pdf")
    observer = RecordingObserver()
    with pytest.raises(FileMissingError) as exc:
        ContractExtractionPipeline(repository, storage, observer=observer).process_contract(contract.id)
    assert isinstance(exc.value, NotFoundError)
    assert observer.failures[0][0] == "verify_file"


def test_blank_pdf_is_empty_extraction_and_keeps_prior_state(repository, storage, make_pdf, contract):
    seed_prior(repository, contract.id)
    upload(repository, storage, contract.id, make_pdf([""]))
    with pytest.raises(EmptyExtractionError) as exc:
        ContractExtractionPipeline(repository, storage).process_contract(contract.id)
    assert exc.value.client_correctable
    assert [c.excerpt for c in repository.list_clauses(contract.id)] == ["prior excerpt"]
    assert repository.get_contract(contract.id).risk_score == Decimal(60)


def test_unexpected_extractor_fault_is_wrapped(repository, storage, make_pdf, contract):
    upload(repository, storage, contract.id, make_pdf(LATEST_PAGES))

    def exploding(stream, cancel_event=None):
        raise RuntimeError("decoder crashed")

    with pytest.raises(ExtractionFailedError) as exc:
        ContractExtractionPipeline(repository, storage, extractor=exploding).process_contract(contract.id)
    assert isinstance(exc.value.__cause__, RuntimeError)
    assert not hasattr(exc.value, "cause")
    assert not exc.value.client_correctable


def test_cancellation_before_commit_keeps_prior_state(repository, storage, make_pdf, contract):
    seed_prior(repository, contract.id)
    upload(repository, storage, contract.id, make_pdf(LATEST_PAGES))
    cancel = threading.Event()

    def detect_then_cancel(full_text, pages):
        found = detect_clauses(full_text, pages)
        cancel.set()
        return found

    observer = RecordingObserver()
    pipeline = ContractExtractionPipeline(repository, storage, observer=observer, detector=detect_then_cancel)
    with pytest.raises(PipelineCancelledError):
        pipeline.process_contract(contract.id, cancel_event=cancel)

    assert observer.failures[0][0] == "replace_clauses"
    assert [c.excerpt for c in repository.list_clauses(contract.id)] == ["prior excerpt"]
    assert repository.get_contract(contract.id).risk_score == Decimal(60)


def test_logging_observer_failure_levels(caplog):
    observer = LoggingObserver()
    with caplog.at_level(logging.INFO, logger="contractintel"):
        observer.failed("c-1", "locate_document", NoDocumentError("No documents found for contract c-1."))
        try:
            raise ExtractionFailedError("Failed to open or read PDF document") from ValueError("bad xref")
        except ExtractionFailedError as e:
            observer.failed("c-1", "extract_text", e)

    correctable, server = caplog.records
    assert correctable.levelno == logging.WARNING
    assert "stage=locate_document" in correctable.getMessage()
    assert correctable.exc_info is None
    assert server.levelno == logging.ERROR
    assert "stage=extract_text" in server.getMessage()
    assert server.exc_info[0] is ExtractionFailedError
