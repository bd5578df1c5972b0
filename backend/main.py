"""Main entry point for the Touchline Football Analyst API."""
import asyncio
import json
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from config import (
    PORT,
    LOG_LEVEL,
    LOG_FORMAT,
    CORS_ORIGINS,
    MEMORY_BACKEND,
    VALIDATION_MODEL,
    ENHANCEMENT_MODEL,
    REALTIME_MODEL,
    ANALYSIS_MODEL,
)
from logger import setup_logging
from models.api import QueryRequest, QueryResponse
from models.pipeline import PipelineEvent
from services.analysis_agent import AnalysisAgent
from services.context_retriever import ContextRetriever
from services.conversation_memory import create_conversation_store
from services.embedding_model import EmbeddingModel
from services.enhancement_agent import EnhancementAgent
from services.errors import SupervisorError, ValidationError, TerminalAnswerError
from services.football_data import FootballDataClient
from services.llm_client import LLMClient, LLMClientError
from services.realtime_agent import RealtimeAgent
from services.security_agent import SecurityAgent
from services.supervisor import Supervisor
from services.vector_store import VectorStore

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Touchline Football Analyst",
    description="Answers football questions from live data and historical documents",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Built on startup
supervisor: Optional[Supervisor] = None


def build_supervisor() -> Supervisor:
    """Construct every collaborator once and hand them to the Supervisor."""
    llm_client = LLMClient()
    embedding_model = EmbeddingModel()
    retriever = ContextRetriever(VectorStore(embedding_model), embedding_model)

    return Supervisor(
        validator=SecurityAgent(llm_client, VALIDATION_MODEL),
        context_retriever=retriever,
        enhancer=EnhancementAgent(llm_client, ENHANCEMENT_MODEL),
        realtime_agent=RealtimeAgent(llm_client, REALTIME_MODEL, FootballDataClient()),
        analysis_agent=AnalysisAgent(llm_client, ANALYSIS_MODEL, retriever=retriever),
        memory=create_conversation_store(MEMORY_BACKEND),
    )


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global supervisor

    if LOG_FORMAT == "json":
        setup_logging(LOG_LEVEL)

    logger.info("Initializing Touchline services...")
    try:
        supervisor = build_supervisor()
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Touchline Football Analyst API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy" if supervisor is not None else "starting",
        "service": "touchline-football-analyst",
        "version": "1.0.0"
    }


@app.post("/query", response_model=QueryResponse)
async def query_endpoint(request: QueryRequest) -> QueryResponse:
    """
    Answer one football question.

    The supervisor runs on a worker thread so concurrent conversations do not
    block each other.

    Raises:
        HTTPException: 400 for rejected queries, 502 when no strategy could
            answer, 503 for model provider errors, 500 otherwise
    """
    _require_question(request)
    try:
        return await run_in_threadpool(supervisor.process, request.question, request.conversation_id)
    except Exception as e:
        raise _to_http_error(e)


@app.post("/query/stream")
async def query_stream_endpoint(request: QueryRequest):
    """
    Streaming variant of /query using Server-Sent Events.

    Emits ``{"type": "step", ...}`` for each pipeline event in order, then a
    single ``{"type": "result", ...}`` or ``{"type": "error", ...}``.
    """
    _require_question(request)

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_step(event: PipelineEvent) -> None:
        payload = {"type": "step", "description": event.description, "context": event.context}
        loop.call_soon_threadsafe(queue.put_nowait, payload)

    async def run_pipeline() -> None:
        try:
            response = await run_in_threadpool(
                supervisor.process, request.question, request.conversation_id, on_step
            )
            await queue.put({"type": "result", "data": response.model_dump()})
        except Exception as e:
            http_error = _to_http_error(e)
            await queue.put({"type": "error", "status": http_error.status_code, "error": http_error.detail})
        finally:
            await queue.put(None)

    async def generate_stream():
        task = asyncio.create_task(run_pipeline())
        try:
            while True:
                item = await queue.get()
                if item is None:
                    break
                yield f"data: {json.dumps(item, default=str)}\n\n".encode("utf-8")
        finally:
            await task

    return StreamingResponse(
        generate_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"
        }
    )


def _require_question(request: QueryRequest) -> None:
    if not request.question or not request.question.strip():
        raise HTTPException(status_code=400, detail="Question field is required and cannot be empty")
    if supervisor is None:
        raise HTTPException(status_code=503, detail="Service is still starting")


def _to_http_error(exc: Exception) -> HTTPException:
    """Map pipeline and provider errors onto HTTP responses."""
    if isinstance(exc, SupervisorError):
        status = 400 if isinstance(exc, ValidationError) else 502 if isinstance(exc, TerminalAnswerError) else 500
        logger.warning(f"Pipeline error ({exc.code}): {exc.message}")
        detail: Dict[str, Any] = {"error": {"code": exc.code, "message": exc.message, "stage": exc.stage}}
        return HTTPException(status_code=status, detail=detail)

    if isinstance(exc, LLMClientError):
        logger.error(f"LLM client error: {exc.error.message}")
        return HTTPException(
            status_code=503,
            detail={"error": {"code": exc.error.code, "message": exc.error.message, "details": exc.error.details}}
        )

    logger.error(f"Unexpected error processing query: {exc}", exc_info=exc)
    return HTTPException(
        status_code=500,
        detail={"error": {"code": "UNKNOWN_ERROR", "message": f"Internal server error: {exc}"}}
    )


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Touchline Football Analyst API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
