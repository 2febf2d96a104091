"""Pydantic request/response schemas for the docchat API.

Defines the public contract for every REST endpoint: upload, document
listing and deletion, index administration, chat and health.

FastAPI validates incoming JSON against the request schemas and serializes
responses through the response schemas; both show up in the OpenAPI docs
at ``/docs``.  Request schemas end with "Request", response schemas with
"Response".  Domain models from ``src.models`` are reused where the wire
shape is the same.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from src.models.chat import ChatMetrics, ChatTurn
from src.models.rag import Citation, DocumentSummary


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentListResponse(BaseModel):
    success: bool = True
    documents: list[DocumentSummary] = Field(default_factory=list)


class DeleteDocumentsRequest(BaseModel):
    """Delete one document's chunks, or everything with ``delete_all``.

    The camelCase keys ``fileName`` / ``deleteAll`` are accepted as well.
    """

    file_name: str | None = Field(
        default=None, validation_alias=AliasChoices("file_name", "fileName")
    )
    delete_all: bool = Field(
        default=False, validation_alias=AliasChoices("delete_all", "deleteAll")
    )


class RecreateIndexRequest(BaseModel):
    confirm: bool = Field(
        default=False,
        description="Must be true; recreating the index deletes every document.",
    )


class IndexStatsResponse(BaseModel):
    success: bool = True
    total_vectors: int
    dimension: int | None = None
    namespaces: dict[str, int] = Field(default_factory=dict)
    message: str | None = None


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    """A whole conversation; the last user turn is the current question."""

    messages: list[ChatTurn] = Field(default_factory=list)


class ChatResponse(BaseModel):
    response: str
    citations: list[Citation] = Field(default_factory=list)
    context: str = Field(
        default="",
        description="First 200 characters of the retrieved context, for debugging.",
    )
    metrics: ChatMetrics
