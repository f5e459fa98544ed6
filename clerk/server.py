"""
Clerk Server

FastAPI server for indexing documents and answering questions about them.

Endpoints:
- GET  /health: Health check
- POST /api/index: Chunk, embed and store a document
- POST /api/query: Retrieval-augmented answer
- POST /api/summarize/llm: JSON summary from the generation model
- POST /api/summarize/heuristic: Offline extractive summary

Every failure returns {"error": "<operation> failed", "stage": ..., "details": ...}
so the client can tell which step broke.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field

from .common.config import ClerkConfig, load_config
from .common.embedding_service import EmbeddingService
from .common.errors import (
    ClerkError,
    EmbeddingFailure,
    GenerationFailure,
    InvalidArgument,
    StorageFailure,
)
from .common.llm_client import (
    ANSWER_MAX_OUTPUT_TOKENS,
    SUMMARY_MAX_OUTPUT_TOKENS,
    GenerationParams,
    LLMClient,
)
from .common.vector_store import VectorStore
from .indexer import Indexer
from .retriever import QueryEngine, QueryOptions, Summarizer, Synthesizer, DEFAULT_LIMIT

load_dotenv()

logger = logging.getLogger("clerk.server")


# Global state
config: Optional[ClerkConfig] = None
store: Optional[VectorStore] = None
embedding_service: Optional[EmbeddingService] = None
llm_client: Optional[LLMClient] = None
indexer: Optional[Indexer] = None
query_engine: Optional[QueryEngine] = None
summarizer: Optional[Summarizer] = None


def init_components(
    cfg: Optional[ClerkConfig] = None,
    embedding: Optional[EmbeddingService] = None,
    llm: Optional[LLMClient] = None,
) -> None:
    """Build the store, clients and pipeline objects from config."""
    global config, store, embedding_service, llm_client, indexer, query_engine, summarizer

    config = cfg or load_config()
    store = VectorStore(config.store.path)
    embedding_service = embedding or EmbeddingService.from_config(config.embedding, config.llm)
    llm_client = llm or LLMClient.from_config(config.llm)

    indexer = Indexer(embedding_service, store)
    query_engine = QueryEngine(embedding_service, store, Synthesizer(llm_client))
    summarizer = Summarizer(llm_client)

    logger.info(
        "Components ready (store: %s, llm: %s/%s, embedding: %s/%s)",
        store.path,
        llm_client.provider,
        "ok" if llm_client.is_available else "unavailable",
        embedding_service.provider,
        "ok" if embedding_service.is_available else "unavailable",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize components on startup"""
    logger.info("Clerk starting up...")
    if query_engine is None:
        init_components()
    yield
    logger.info("Clerk shutting down...")


# =============================================================================
# Request Models
# =============================================================================

class GenerationOptions(BaseModel):
    """Sampling options; camelCase names from the web client are accepted"""
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    top_p: float = Field(0.9, gt=0.0, le=1.0, validation_alias=AliasChoices("top_p", "topP"))
    top_k: int = Field(40, ge=1, validation_alias=AliasChoices("top_k", "modelTopK"))
    max_output_tokens: int = Field(
        ANSWER_MAX_OUTPUT_TOKENS,
        ge=1,
        validation_alias=AliasChoices("max_output_tokens", "maxOutputTokens"),
    )

    def to_params(self) -> GenerationParams:
        return GenerationParams(
            temperature=self.temperature,
            top_p=self.top_p,
            top_k=self.top_k,
            max_output_tokens=self.max_output_tokens,
        )


class IndexRequest(BaseModel):
    """Document to index"""
    id: Optional[str] = None
    text: Optional[str] = None


class QueryRequest(GenerationOptions):
    """Question plus retrieval and sampling options.

    ``topK`` is the number of chunks to retrieve (alias of ``limit``); the
    model's own top-k is ``top_k`` / ``modelTopK``.
    """
    query: Optional[str] = None
    limit: int = Field(DEFAULT_LIMIT, ge=1, validation_alias=AliasChoices("limit", "topK"))


class LLMSummaryRequest(GenerationOptions):
    text: Optional[str] = None
    max_output_tokens: int = Field(
        SUMMARY_MAX_OUTPUT_TOKENS,
        ge=1,
        validation_alias=AliasChoices("max_output_tokens", "maxOutputTokens"),
    )


class HeuristicSummaryRequest(BaseModel):
    text: Optional[str] = None
    max_sentences: int = Field(5, ge=1, validation_alias=AliasChoices("max_sentences", "maxSentences"))


# =============================================================================
# Error Handling
# =============================================================================

_STATUS_CODES = {
    InvalidArgument: 400,
    EmbeddingFailure: 502,
    GenerationFailure: 502,
    StorageFailure: 500,
}


def error_response(operation: str, exc: ClerkError, **extra) -> JSONResponse:
    """Map a ClerkError to a JSON error body naming the failed operation."""
    status_code = next(
        (code for cls, code in _STATUS_CODES.items() if isinstance(exc, cls)),
        500,
    )
    body = {
        "error": f"{operation} failed",
        "stage": exc.stage,
        "details": exc.message,
    }
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


_OPERATIONS = {
    "/api/index": "index",
    "/api/query": "query",
    "/api/summarize/llm": "summarize",
    "/api/summarize/heuristic": "summarize",
}


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for errors outside the ClerkError hierarchy"""
    operation = _OPERATIONS.get(request.url.path, "request")
    logger.error("Unexpected error during %s: %s", operation, exc, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": f"{operation} failed",
            "stage": ClerkError.stage,
            "details": str(exc),
        },
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": "invalid request",
            "stage": InvalidArgument.stage,
            "details": [
                {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg", "")}
                for err in exc.errors()
            ],
        },
    )


# =============================================================================
# App
# =============================================================================

def create_app(cfg: Optional[ClerkConfig] = None) -> FastAPI:
    app = FastAPI(
        title="Clerk",
        description="Legal document indexing and grounded question answering",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=(cfg or load_config()).server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.add_api_route("/health", health, methods=["GET"])
    app.add_api_route("/api/index", index_document, methods=["POST"])
    app.add_api_route("/api/query", query_documents, methods=["POST"])
    app.add_api_route("/api/summarize/llm", summarize_llm, methods=["POST"])
    app.add_api_route("/api/summarize/heuristic", summarize_heuristic, methods=["POST"])

    return app


# =============================================================================
# Endpoints
# =============================================================================

def health():
    """Health check endpoint"""
    status = {
        "status": "healthy",
        "service": "clerk",
        "initialized": query_engine is not None,
        "llm_available": llm_client.is_available if llm_client else False,
        "embedding_available": embedding_service.is_available if embedding_service else False,
    }

    if store:
        try:
            status["chunk_count"] = store.count()
        except StorageFailure as e:
            status["status"] = "degraded"
            status["store_error"] = e.message

    return status


def index_document(request: IndexRequest):
    """Chunk, embed and store a document"""
    try:
        added = indexer.index(request.id, request.text)
    except ClerkError as e:
        logger.warning("Index failed for %r: %s", request.id, e)
        return error_response("index", e)

    return {"ok": True, "id": request.id, "added": added}


def query_documents(request: QueryRequest):
    """Answer a question from the indexed documents"""
    options = QueryOptions(limit=request.limit, generation=request.to_params())
    try:
        result = query_engine.answer(request.query, options)
    except GenerationFailure as e:
        logger.warning("Query generation failed: %s", e)
        return error_response("query", e, results=[r.to_dict() for r in e.results])
    except ClerkError as e:
        logger.warning("Query failed: %s", e)
        return error_response("query", e)

    return result.to_dict()


def summarize_llm(request: LLMSummaryRequest):
    """Structured summary from the generation model"""
    try:
        result = summarizer.summarize_with_llm(request.text, request.to_params())
    except ClerkError as e:
        logger.warning("LLM summary failed: %s", e)
        return error_response("summarize", e)

    return result.to_dict()


def summarize_heuristic(request: HeuristicSummaryRequest):
    """Offline extractive summary"""
    try:
        result = summarizer.summarize_heuristic(request.text, request.max_sentences)
    except ClerkError as e:
        return error_response("summarize", e)

    return {"summary": result.to_dict()}


app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the Clerk server"""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )

    cfg = load_config()
    logger.info("Starting server on %s:%d", cfg.server.host, cfg.server.port)
    uvicorn.run(
        "clerk.server:app",
        host=cfg.server.host,
        port=cfg.server.port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
