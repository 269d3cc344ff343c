"""Command-line entry point.

Usage
-----
    grounded-rag ingest            # index new / changed documents
    grounded-rag status            # show which documents are indexed
    grounded-rag ask "question"    # retrieve + generate an answer
    grounded-rag reset             # forget the ledger (next ingest re-indexes all)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from grounded_rag.config import settings
from grounded_rag.errors import ConfigurationError, RAGError, ValidationError

logger = logging.getLogger("grounded_rag")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="grounded-rag", description="Grounded RAG over a document folder")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("ingest", help="Ingest new or changed documents")
    sub.add_parser("status", help="Print ingestion status as JSON")
    sub.add_parser("reset", help="Delete the ingestion ledger")

    ask = sub.add_parser("ask", help="Answer a question from the indexed documents")
    ask.add_argument("question")
    ask.add_argument("--top-k", type=int, default=None, help="Number of chunks to retrieve")
    ask.add_argument(
        "--context-only",
        action="store_true",
        help="Print the retrieved context and sources without calling the LLM",
    )
    return parser


def _cmd_ingest() -> int:
    from grounded_rag.ingestion.orchestrator import build_orchestrator

    report = build_orchestrator(settings).run()
    print(report.summary())
    return 1 if report.failed else 0


def _cmd_status() -> int:
    from grounded_rag.ingestion.ledger import IngestionLedger
    from grounded_rag.ingestion.loader import DirectorySource
    from grounded_rag.ingestion.status import build_status

    report = build_status(
        DirectorySource(settings.documents_dir, settings.document_extensions),
        IngestionLedger(settings.resolved_ledger_path),
    )
    print(report.model_dump_json(indent=2))
    return 0


def _cmd_reset() -> int:
    from grounded_rag.ingestion.ledger import IngestionLedger

    IngestionLedger(settings.resolved_ledger_path).reset()
    print(f"Deleted {settings.resolved_ledger_path}")
    return 0


def _cmd_ask(question: str, top_k: int | None, context_only: bool) -> int:
    from grounded_rag.retrieval.retriever import get_retriever

    retriever = get_retriever(settings)
    if context_only:
        result = retriever.retrieve(question, top_k)
        print(json.dumps(result.model_dump(), indent=2))
        return 0

    from grounded_rag.generation.answer import AnswerGenerator, answer_question
    from grounded_rag.generation.llm import get_llm

    answer = answer_question(retriever, AnswerGenerator(get_llm(settings)), question, top_k=top_k)
    print(answer.answer)
    for source in answer.sources:
        print(f"  {source.short_ref()}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        if args.command == "ingest":
            return _cmd_ingest()
        if args.command == "status":
            return _cmd_status()
        if args.command == "reset":
            return _cmd_reset()
        return _cmd_ask(args.question, args.top_k, args.context_only)
    except ValidationError as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 2
    except ConfigurationError as exc:
        logger.warning("Not configured: %s", exc)
        return 3
    except RAGError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
