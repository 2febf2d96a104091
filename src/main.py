"""docchat FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and validates settings before the server accepts
traffic.

:func:`build_components` is shared with the operator CLI so both build the
index the same way (same embedding model, same dimension, same store).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings, validate_settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.rate_limit.memory_rate_limiter import MemoryRateLimiter
from src.providers.vector_store.chromadb_provider import ChromaDBProvider
from src.providers.vector_store.memory_provider import InMemoryVectorStore
from src.services.chat_service import ChatService
from src.services.document_service import DocumentService
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.deduplicator import NearDuplicateFilter
from src.services.ingestion.document_extractor import DocumentExtractor
from src.services.ingestion.ingestion_service import IngestionService
from src.services.retrieval.retrieval_service import RetrievalService
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    return OpenAIEmbeddingProvider(settings=app_settings)


def _build_vector_store(app_settings: Settings) -> IVectorStoreProvider:
    """ChromaDB on disk by default; ``VECTOR_STORE=memory`` for throwaway runs."""
    if app_settings.vector_store == "memory":
        return InMemoryVectorStore(dimension=app_settings.embedding_dimension)
    return ChromaDBProvider(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_name=app_settings.chromadb_collection,
        dimension=app_settings.embedding_dimension,
    )


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    return OpenAILLMProvider(settings=app_settings)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    embedding_provider = _build_embedding_provider(app_settings)
    vector_store = _build_vector_store(app_settings)
    llm_provider = _build_llm_provider(app_settings)

    ingestion_service = IngestionService(
        chunker=TextChunker(
            chunk_size=app_settings.chunk_size,
            overlap=app_settings.chunk_overlap,
        ),
        deduplicator=NearDuplicateFilter(threshold=app_settings.dedup_threshold),
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        upsert_batch_size=app_settings.upsert_batch_size,
        allow_index_recreation=app_settings.allow_index_recreation,
    )
    document_service = DocumentService(
        extractor=DocumentExtractor(),
        ingestion=ingestion_service,
        vector_store=vector_store,
        max_file_size=app_settings.max_file_size,
        embedding_dimension=app_settings.embedding_dimension,
        delete_page_size=app_settings.delete_page_size,
    )

    retrieval_service = RetrievalService(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        default_top_k=app_settings.max_search_results,
    )
    chat_service = ChatService(
        retrieval=retrieval_service,
        llm=llm_provider,
        temperature=app_settings.openai_temperature,
        max_tokens=app_settings.openai_max_tokens,
    )

    rate_limiter = MemoryRateLimiter(
        max_requests=app_settings.rate_limit_max_requests,
        window_seconds=app_settings.rate_limit_window_seconds,
    )

    return {
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "llm_provider": llm_provider,
        "ingestion_service": ingestion_service,
        "document_service": document_service,
        "retrieval_service": retrieval_service,
        "chat_service": chat_service,
        "rate_limiter": rate_limiter,
        "version": config.get("app", {}).get("version", "0.1.0"),
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Validate settings and initialise all providers and services on startup."""
    validate_settings(settings)
    components = build_components(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=components["version"],
        environment=settings.app_env,
        vector_store=components["vector_store"].get_provider_name(),
        embedding=components["embedding_provider"].get_provider_name(),
        llm=components["llm_provider"].get_provider_name(),
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application.

    Providers are attached in the lifespan, so a test can build the app and
    set ``app.state`` by hand without touching OpenAI or disk.
    """
    app_config = config.get("app", {})
    application = FastAPI(
        title=app_config.get("title", "docchat API"),
        version=app_config.get("version", "0.1.0"),
        description=(
            "Upload text and PDF documents, then chat with an assistant that "
            "answers from their contents and cites the passages it used."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RateLimitMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(
        application,
        allowed_origins=config.get("api", {}).get("cors_origins"),
    )

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
