"""
CKMS Requirements Assistant — Main Entry Point

Build the vector index from the CKMS profile PDF (run once, offline):
    python -m ckms_rag ingest [path/to/nist.pdf]

Ask a question against the persisted index:
    python -m ckms_rag query "Extract requirements from chapter 2." [--output answer.md]

Or import and run programmatically:
    from ckms_rag.main import run_ingest, run_query
    run_ingest("data/nist1.pdf")
    answer = run_query("Extract every FR requirement in chapter 6")["final_answer"]
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from ckms_rag.config import Settings, get_settings
from ckms_rag.errors import PipelineError
from ckms_rag.orchestration.graph import run_ingestion_pipeline, run_query_pipeline
from ckms_rag.utils.logger import setup_logging


def run_ingest(document_path: str = "", settings: Settings | None = None) -> dict:
    """Ingest the document, replacing the persisted index. Returns the final state."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    _log_banner(logger, settings, "INGEST")
    final_state = run_ingestion_pipeline(document_path, settings=settings)
    _print_ingest_summary(final_state)
    return final_state


def run_query(question: str, settings: Settings | None = None) -> dict:
    """Answer a question against the persisted index. Returns the final state."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    _log_banner(logger, settings, "QUERY")
    final_state = run_query_pipeline(question, settings=settings)
    _print_query_summary(final_state)
    return final_state


def _log_banner(logger: logging.Logger, settings: Settings, mode: str) -> None:
    logger.info("=" * 60)
    logger.info(f"  {settings.app_name.upper()}")
    logger.info(f"  Mode: {mode} | Started: {datetime.now(timezone.utc).isoformat()}")
    logger.info("=" * 60)


def _print_ingest_summary(state: dict) -> None:
    """Log a human-readable summary of the ingestion result."""
    logger = logging.getLogger(__name__)

    logger.info("")
    logger.info("-" * 60)
    logger.info("  INGESTION SUMMARY")
    logger.info("-" * 60)
    logger.info(f"  Document:       {state.get('document_path', 'N/A')}")
    logger.info(f"  SHA-256:        {state.get('document_hash', 'N/A')[:16]}...")
    logger.info(f"  Pages:          {state.get('page_count', 0)}")
    logger.info(f"  Requirements:   {state.get('record_count', 0)} indexed")
    logger.info(f"  Unmapped pages: {state.get('unmapped_record_count', 0)} requirements")
    for chapter, count in sorted(
        state.get("chapter_counts", {}).items(),
        key=lambda kv: (kv[0] == "None", int(kv[0]) if kv[0] != "None" else 0),
    ):
        logger.info(f"    chapter {chapter:>4}: {count}")
    logger.info("-" * 60)


def _print_query_summary(state: dict) -> None:
    """Log a human-readable summary of the query result."""
    logger = logging.getLogger(__name__)

    logger.info("")
    logger.info("-" * 60)
    logger.info("  QUERY SUMMARY")
    logger.info("-" * 60)
    logger.info(f"  Question:       {state.get('question', '')}")
    logger.info(f"  Sub-queries:    {len(state.get('sub_queries', []))}")
    logger.info(
        f"  Records:        {len(state.get('records', []))} "
        f"(from {state.get('retrieved_before_dedup', 0)} hits)"
    )
    logger.info(f"  Batch answers:  {len(state.get('answers', []))}")
    logger.info(f"  Final Status:   {state.get('status', 'UNKNOWN')}")
    logger.info("-" * 60)

    audit = state.get("audit_trail", [])
    logger.info(f"\n  Audit Trail: {len(audit)} entries")
    for entry in audit:
        entry = entry if isinstance(entry, dict) else entry.model_dump()
        logger.info(
            f"    v{entry.get('state_version', '?')} | "
            f"{entry.get('agent', '?')} | "
            f"{entry.get('action', '?')} | "
            f"{entry.get('details', '')}"
        )
    logger.info("")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ckms_rag",
        description="Index the CKMS profile PDF and answer questions about its requirements",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    ingest = commands.add_parser("ingest", help="Rebuild the vector index from the PDF")
    ingest.add_argument(
        "document",
        nargs="?",
        default="",
        help="PDF to ingest (default: DOCUMENT_PATH setting)",
    )

    query = commands.add_parser("query", help="Answer a question against the index")
    query.add_argument("question", nargs="+", help="Question text (words are joined)")
    query.add_argument(
        "-o", "--output",
        default="",
        metavar="FILE",
        help="Also write the final answer to FILE",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI dispatch. Returns the process exit code; usage errors exit with 2."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "ingest":
            run_ingest(args.document)
            return 0

        question = " ".join(args.question).strip()
        if not question:
            parser.error("QUESTION must not be empty")

        final_state = run_query(question)
        answer = final_state.get("final_answer", "")
        if args.output:
            Path(args.output).write_text(answer, encoding="utf-8")
            logging.getLogger(__name__).info(f"Answer written to {args.output}")
        print(answer)
        return 0
    except (PipelineError, FileNotFoundError, ValueError, LookupError) as exc:
        logging.getLogger(__name__).error(f"Run failed: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
