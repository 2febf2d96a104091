"""FastAPI API routes for docchat.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern; main.py populates the state at
startup and tests populate it by hand.

Endpoint                     Method  Description
/api/v1/documents/upload     POST    Upload a .txt/.pdf -> extract -> ingest
/api/v1/documents            GET     List stored documents with chunk counts
/api/v1/documents            DELETE  Delete one document or all of them
/api/v1/index/stats          GET     Vector index size and dimension
/api/v1/index/recreate       POST    Drop and rebuild the index (confirm=true)
/api/v1/chat                 POST    Answer a conversation with citations
/api/v1/health               GET     Health check + provider status

Domain errors raised by the services are translated to JSON responses by
ErrorHandlingMiddleware; routes do not catch them.
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, File, Request, UploadFile

from src.api.schemas import (
    ChatRequest,
    ChatResponse,
    DeleteDocumentsRequest,
    DocumentListResponse,
    ErrorResponse,
    HealthResponse,
    IndexStatsResponse,
    RecreateIndexRequest,
)
from src.models.rag import DeleteResult, UploadResult
from src.services.chat_service import ChatService
from src.services.document_service import DocumentService
from src.utils.errors import InvalidRequestError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

# Uploads are read in 64 KB increments so an oversized file is rejected
# after buffering just past the limit instead of in full.
_UPLOAD_CHUNK_SIZE = 64 * 1024

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service


def _get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


DocumentServiceDep = Annotated[DocumentService, Depends(_get_document_service)]
ChatServiceDep = Annotated[ChatService, Depends(_get_chat_service)]


async def _read_limited(file: UploadFile, limit: int, documents: DocumentService) -> bytes:
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > limit:
            raise documents.size_limit_error(total_size)
        chunks.append(chunk)
    return b"".join(chunks)


# ---------------------------------------------------------------------------
# Document endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/documents/upload",
    response_model=UploadResult,
    responses={**_ERROR_RESPONSES, 413: {"model": ErrorResponse}, 415: {"model": ErrorResponse}},
    summary="Upload a text or PDF document into the knowledge base",
)
async def upload_document(
    documents: DocumentServiceDep,
    file: Annotated[UploadFile | None, File()] = None,
) -> UploadResult:
    """Validate, extract, chunk, embed and store one uploaded file."""
    if file is None:
        raise InvalidRequestError("No file provided")

    # Reject on name, type and declared size before reading the body.
    documents.validate_upload(file.filename, file.content_type, file.size)

    data = await _read_limited(file, documents.max_file_size, documents)
    result = await documents.upload(file.filename, file.content_type, data)
    _logger.info(
        "document_uploaded",
        file_name=result.file_name,
        success=result.success,
        chunks=result.chunks,
    )
    return result


@router.get(
    "/documents",
    response_model=DocumentListResponse,
    summary="List stored documents",
)
async def list_documents(documents: DocumentServiceDep) -> DocumentListResponse:
    return DocumentListResponse(documents=await documents.list_documents())


@router.delete(
    "/documents",
    response_model=DeleteResult,
    responses=_ERROR_RESPONSES,
    summary="Delete one document's chunks or every document",
)
async def delete_documents(
    body: DeleteDocumentsRequest,
    documents: DocumentServiceDep,
) -> DeleteResult:
    return await documents.delete(file_name=body.file_name, delete_all=body.delete_all)


# ---------------------------------------------------------------------------
# Index administration
# ---------------------------------------------------------------------------


@router.get(
    "/index/stats",
    response_model=IndexStatsResponse,
    summary="Vector index statistics",
)
async def index_stats(documents: DocumentServiceDep) -> IndexStatsResponse:
    stats = await documents.stats()
    return IndexStatsResponse(**stats.model_dump())


@router.post(
    "/index/recreate",
    response_model=IndexStatsResponse,
    responses=_ERROR_RESPONSES,
    summary="Drop and rebuild the vector index (deletes every document)",
)
async def recreate_index(
    body: RecreateIndexRequest,
    documents: DocumentServiceDep,
) -> IndexStatsResponse:
    stats = await documents.recreate_index(confirm=body.confirm)
    return IndexStatsResponse(
        **stats.model_dump(),
        message=f"Index recreated with {stats.dimension} dimensions",
    )


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses=_ERROR_RESPONSES,
    summary="Answer a conversation from the uploaded documents",
)
async def chat(body: ChatRequest, chat_service: ChatServiceDep) -> ChatResponse:
    result = await chat_service.answer(body.messages)
    return ChatResponse(
        response=result.response,
        citations=result.citations,
        context=result.context_preview,
        metrics=result.metrics,
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(request: Request) -> HealthResponse:
    state = request.app.state
    providers: dict[str, Any] = {}
    for key in ("embedding_provider", "vector_store", "llm_provider"):
        provider = getattr(state, key, None)
        if provider is not None:
            providers[key] = {
                "name": provider.get_provider_name(),
                "available": provider.is_available(),
            }
    status = "healthy" if providers and all(p["available"] for p in providers.values()) else "degraded"
    return HealthResponse(
        status=status,
        version=getattr(state, "version", "unknown"),
        providers=providers,
    )
