"""FastAPI application exposing ingestion status and grounded Q&A over HTTP."""

from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from grounded_rag.config import settings
from grounded_rag.errors import ConfigurationError, RAGError, ValidationError
from grounded_rag.generation.answer import Answer, AnswerGenerator, answer_question
from grounded_rag.ingestion.ledger import IngestionLedger
from grounded_rag.ingestion.loader import DirectorySource
from grounded_rag.ingestion.orchestrator import IngestionOrchestrator, build_orchestrator
from grounded_rag.ingestion.status import StatusReport, build_status
from grounded_rag.retrieval import get_vector_store
from grounded_rag.retrieval.retriever import Retriever, get_retriever

logger = logging.getLogger(__name__)


# ── Dependencies (overridden in tests) ────────────────────────────────
@lru_cache(maxsize=1)
def get_orchestrator() -> IngestionOrchestrator:
    return build_orchestrator(settings)


@lru_cache(maxsize=1)
def get_query_retriever() -> Retriever:
    return get_retriever(settings)


@lru_cache(maxsize=1)
def get_answer_generator() -> AnswerGenerator:
    from grounded_rag.generation.llm import get_llm

    return AnswerGenerator(get_llm(settings))


def get_store_health() -> bool:
    """Reachability of the configured vector store; construction failures count as down."""
    try:
        return get_vector_store(settings).health_check()
    except RAGError as exc:
        logger.warning("Vector store unavailable: %s", exc)
        return False


def get_status_report() -> StatusReport:
    return build_status(
        DirectorySource(settings.documents_dir, settings.document_extensions),
        IngestionLedger(settings.resolved_ledger_path),
    )


def _run_ingestion_in_background() -> bool:
    """Start one ingestion run on a daemon thread; ``False`` if not configured."""
    try:
        orchestrator = get_orchestrator()
    except ConfigurationError as exc:
        logger.warning("Skipping ingestion: %s", exc)
        return False

    def _target() -> None:
        report = orchestrator.run()
        logger.info(report.summary())

    threading.Thread(target=_target, name="ingestion", daemon=True).start()
    return True


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.ingest_on_startup:
        _run_ingestion_in_background()
    yield


app = FastAPI(
    title="Grounded RAG API",
    version="0.1.0",
    description="Question answering grounded in an indexed document corpus.",
    lifespan=lifespan,
)


# ── Request / Response schemas ────────────────────────────────────────
class QueryRequest(BaseModel):
    """Incoming question from the user."""

    question: str


class IngestResponse(BaseModel):
    status: str


# ── Routes ────────────────────────────────────────────────────────────
@app.exception_handler(ConfigurationError)
async def configuration_error_handler(_: Request, exc: ConfigurationError) -> JSONResponse:
    """Missing credentials are an operator problem, not a crash."""
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/health")
def health(store_ok: bool = Depends(get_store_health)) -> dict[str, str]:
    """Liveness probe; reports the vector store as ``ok`` or ``unavailable``."""
    return {
        "status": "ok" if store_ok else "degraded",
        "vector_store": "ok" if store_ok else "unavailable",
    }


@app.get("/status", response_model=StatusReport)
def status(report: StatusReport = Depends(get_status_report)) -> StatusReport:
    """Documents on disk and whether each has been ingested."""
    return report


@app.post("/ingest", response_model=IngestResponse, status_code=202)
def ingest(orchestrator: Any = Depends(get_orchestrator)) -> IngestResponse:
    """Trigger an ingestion run; a run already in flight makes this a no-op."""
    if orchestrator.is_running:
        return IngestResponse(status="already_running")

    def _target() -> None:
        logger.info(orchestrator.run().summary())

    threading.Thread(target=_target, name="ingestion", daemon=True).start()
    return IngestResponse(status="started")


@app.post("/query", response_model=Answer)
def query(
    request: QueryRequest,
    retriever: Retriever = Depends(get_query_retriever),
    generator: AnswerGenerator = Depends(get_answer_generator),
) -> Answer:
    """Retrieve grounded context and generate an answer."""
    try:
        return answer_question(retriever, generator, request.question)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RAGError as exc:
        logger.error("Query error: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
