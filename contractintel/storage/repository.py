from __future__ import annotations
import threading
import uuid
import weakref
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional
from sqlalchemy import Select, delete, select
from sqlalchemy.orm import selectinload, sessionmaker
from contractintel.storage.models import ClauseRow, ContractRow, DocumentRow, utcnow
from contractintel.utils.exception import NotFoundError, raise_if_cancelled
from contractintel.utils.types import ClauseRecord, ContractSnapshot, DetectedClause, DocumentRef

# contract_id -> lock serializing clause replacement within this process;
# an entry lives only while some caller still holds its lock
_contract_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_registry_lock = threading.Lock()


def contract_lock(contract_id: str) -> threading.Lock:
    with _registry_lock:
        lock = _contract_locks.get(contract_id)
        if lock is None:
            lock = threading.Lock()
            _contract_locks[contract_id] = lock
        return lock


def _new_id() -> str:
    return str(uuid.uuid4())


def lock_contract_row(contract_id: str) -> Select:
    """SELECT ... FOR UPDATE on the contract row; SQLite compiles it without the clause."""
    return select(ContractRow).where(ContractRow.id == contract_id).with_for_update()


def _to_document_ref(r: DocumentRow) -> DocumentRef:
    return DocumentRef(id=r.id, file_name=r.file_name, file_path=r.file_path, uploaded_at=r.uploaded_at)


def _to_snapshot(r: ContractRow) -> ContractSnapshot:
    return ContractSnapshot(
        id=r.id,
        title=r.title,
        vendor=r.vendor,
        risk_score=r.risk_score,
        documents=tuple(_to_document_ref(d) for d in r.documents),
        start_date=r.start_date,
        end_date=r.end_date,
        renewal_date=r.renewal_date,
    )


def _to_record(r: ClauseRow) -> ClauseRecord:
    return ClauseRecord(
        id=r.id,
        contract_id=r.contract_id,
        document_id=r.document_id,
        clause_type=r.clause_type,
        excerpt=r.excerpt,
        confidence=r.confidence,
        page_number=r.page_number,
        extracted_at=r.extracted_at,
        approved_by=r.approved_by,
        approved_at=r.approved_at,
    )


class ContractRepository:
    """Contract/document/clause persistence returning plain value objects."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def create_contract(
        self,
        title: str,
        vendor: str,
        contract_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        renewal_date: Optional[date] = None,
    ) -> ContractSnapshot:
        now = utcnow()
        rec = ContractRow(
            id=contract_id or _new_id(),
            title=title,
            vendor=vendor,
            start_date=start_date,
            end_date=end_date,
            renewal_date=renewal_date,
            created_at=now,
            updated_at=now,
        )
        with self._session_factory() as db:
            db.add(rec)
            db.commit()
            return ContractSnapshot(
                id=rec.id,
                title=rec.title,
                vendor=rec.vendor,
                start_date=rec.start_date,
                end_date=rec.end_date,
                renewal_date=rec.renewal_date,
            )

    def add_document(
        self,
        contract_id: str,
        file_name: str,
        file_path: str,
        file_size: int = 0,
        mime_type: Optional[str] = "application/pdf",
        uploaded_at: Optional[datetime] = None,
    ) -> DocumentRef:
        with self._session_factory() as db:
            if db.get(ContractRow, contract_id) is None:
                raise NotFoundError(f"Contract {contract_id} not found.")
            rec = DocumentRow(
                id=_new_id(),
                contract_id=contract_id,
                file_name=file_name,
                file_path=file_path,
                file_size=file_size,
                mime_type=mime_type,
                uploaded_at=uploaded_at or utcnow(),
            )
            db.add(rec)
            db.commit()
            return _to_document_ref(rec)

    def get_contract(self, contract_id: str) -> Optional[ContractSnapshot]:
        with self._session_factory() as db:
            q = select(ContractRow).options(selectinload(ContractRow.documents)).where(ContractRow.id == contract_id)
            rec = db.execute(q).scalar_one_or_none()
            return _to_snapshot(rec) if rec else None

    def list_clauses(self, contract_id: str) -> List[ClauseRecord]:
        with self._session_factory() as db:
            q = select(ClauseRow).where(ClauseRow.contract_id == contract_id)
            rows = db.execute(q).scalars().all()
        records = [_to_record(r) for r in rows]
        records.sort(key=lambda c: (c.page_number is None, c.page_number or 0, c.clause_type, c.excerpt))
        return records

    def replace_clauses(
        self,
        contract_id: str,
        document_id: Optional[str],
        clauses: Iterable[DetectedClause],
        risk_score: Decimal,
        cancel_event=None,
    ) -> List[ClauseRecord]:
        """Swap the contract's whole clause set and risk score in one transaction.

        Old clauses are deleted, new ones inserted and the contract's risk score and
        updated_at written together; any exception (including cancellation checked
        just before commit) rolls everything back. Runs for the same contract are
        serialized twice: by a process-local lock and by a row lock on the contract
        taken first in the transaction, so concurrent deletes from other workers
        wait for the previous run to commit. The last committer's clause set is
        the one that remains.
        """
        clause_list = list(clauses)
        with contract_lock(contract_id):
            with self._session_factory() as db:
                with db.begin():
                    contract = db.execute(lock_contract_row(contract_id)).scalar_one_or_none()
                    if contract is None:
                        raise NotFoundError(f"Contract {contract_id} not found.")
                    db.execute(delete(ClauseRow).where(ClauseRow.contract_id == contract_id))
                    now = utcnow()
                    rows = [
                        ClauseRow(
                            id=_new_id(),
                            contract_id=contract_id,
                            document_id=document_id,
                            clause_type=c.clause_type,
                            excerpt=c.excerpt,
                            confidence=c.confidence,
                            page_number=c.page_number,
                            extracted_at=now,
                        )
                        for c in clause_list
                    ]
                    db.add_all(rows)
                    contract.risk_score = risk_score
                    contract.updated_at = now
                    db.flush()
                    raise_if_cancelled(cancel_event, "before committing clause replacement")
                return [_to_record(r) for r in rows]
