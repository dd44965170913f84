"""Command line entry point.

    contractintel analyze contract.pdf      # extract / detect / score one file, print JSON
    contractintel process <contract-id>     # full pipeline against DATABASE_URL + STORAGE_ROOT
"""
from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import List, Optional, Tuple
from contractintel.analysis.clauses import detect_clauses, sort_for_display
from contractintel.analysis.risk import calculate_risk_score
from contractintel.ingest.pdf_loader import extract_text_from_path
from contractintel.pipeline.extraction import ContractExtractionPipeline, build_summary
from contractintel.report.json_export import build_summary_json
from contractintel.storage.db import create_session_factory, init_db, make_engine
from contractintel.storage.files import LocalFileStorage
from contractintel.storage.repository import ContractRepository
from contractintel.utils.config import AppConfig, RiskScoringOptions
from contractintel.utils.exception import ContractIntelError
from contractintel.utils.logger import configure_logging
from contractintel.utils.types import DetectedClause, ExtractionSummary


def analyze_pdf(path: str, options: Optional[RiskScoringOptions] = None) -> Tuple[ExtractionSummary, List[DetectedClause]]:
    extracted = extract_text_from_path(path)
    clauses = detect_clauses(extracted.full_text, extracted.pages)
    score = calculate_risk_score(clauses, options)
    summary = build_summary("local", Path(path).name, extracted.pages, clauses, score)
    return summary, sort_for_display(clauses)


def process_contract(config: AppConfig, contract_id: str) -> Tuple[ExtractionSummary, list]:
    engine = make_engine(config.database_url)
    init_db(engine)
    repository = ContractRepository(create_session_factory(engine))
    pipeline = ContractExtractionPipeline(repository, LocalFileStorage(config.storage_root), options=config.risk)
    summary = pipeline.process_contract(contract_id)
    return summary, repository.list_clauses(contract_id)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="contractintel", description="Contract clause detection and risk scoring")
    sub = parser.add_subparsers(dest="command", required=True)
    p_an = sub.add_parser("analyze", help="analyze a single PDF file")
    p_an.add_argument("pdf")
    p_pr = sub.add_parser("process", help="run the stored-contract pipeline")
    p_pr.add_argument("contract_id")
    args = parser.parse_args(argv)

    config = AppConfig.from_env()
    configure_logging(config.log_level)
    try:
        if args.command == "analyze":
            summary, clauses = analyze_pdf(args.pdf, config.risk)
        else:
            summary, clauses = process_contract(config, args.contract_id)
    except ContractIntelError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    print(build_summary_json(summary, clauses, meta={"command": args.command}))
    return 0


if __name__ == "__main__":
    sys.exit(main())
