"""RAG pipeline data models for the docchat knowledge base.

Defines Pydantic v2 models for chunks, vector records, search matches,
citations and ingestion/retrieval results.  All models use frozen config so
values flowing between pipeline stages cannot be mutated in place.

Pipeline overview:

    1. INGESTION: uploaded text is normalized and split into :class:`Chunk`
       windows by src/services/ingestion/chunker.py.
    2. EMBEDDING: each surviving chunk becomes a :class:`VectorRecord` whose
       ``values`` come from the embedding provider.
    3. STORAGE: records are upserted into the vector store under the id
       ``<source>-<chunkIndex>``.
    4. RETRIEVAL: a query vector yields :class:`SearchMatch` objects, which
       become the context window and the :class:`Citation` list.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_WHITESPACE_RUN = re.compile(r"\s+")


def make_record_id(source: str, chunk_index: int) -> str:
    """Deterministic vector id for a chunk: whitespace runs become ``_``."""
    return _WHITESPACE_RUN.sub("_", f"{source}-{chunk_index}")


# ---------------------------------------------------------------------------
# Chunk -- the unit produced by the chunker.
# ---------------------------------------------------------------------------
class Chunk(BaseModel):
    """A window of normalized document text.

    ``index`` is assigned densely by the chunker; deduplication drops chunks
    without renumbering, so surviving indexes may have gaps.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="The chunk's textual content.")
    title: str = Field(description="First three words of the chunk, or 'Chunk'.")
    summary: str = Field(description="First sentence or leading excerpt of the chunk.")
    index: int = Field(ge=0, description="Zero-based position in chunker output.")


# ---------------------------------------------------------------------------
# VectorRecord -- what gets written to the vector store.
# ---------------------------------------------------------------------------
class ChunkMetadata(BaseModel):
    """Metadata stored alongside each vector.

    Serialized with ``by_alias=True`` so the stored key is ``chunkIndex``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str
    title: str
    summary: str
    source: str
    chunk_index: int = Field(alias="chunkIndex", ge=0)
    timestamp: str = Field(description="ISO-8601 UTC time the record was built.")


class VectorRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    values: list[float]
    metadata: ChunkMetadata

    def metadata_dict(self) -> dict[str, Any]:
        return self.metadata.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# SearchMatch / Citation -- retrieval output.
# ---------------------------------------------------------------------------
class SearchMatch(BaseModel):
    """A vector-store hit.  Higher ``score`` means more relevant.

    Scores are cosine similarities and are not clamped; they may be negative.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class Citation(BaseModel):
    """A source reference shown next to a chat answer, one per match."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: str = ""
    source: str = "Unknown source"
    page: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class RetrievalResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    matches: list[SearchMatch] = Field(default_factory=list)
    context: str
    citations: list[Citation] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Ingestion and index bookkeeping.
# ---------------------------------------------------------------------------
class IngestionResult(BaseModel):
    """Summary of a single document ingestion run."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(description="File name the chunks were stored under.")
    chunk_count: int = Field(
        default=0, ge=0, description="Chunks that survived deduplication and were stored."
    )
    original_chunk_count: int = Field(
        default=0, ge=0, description="Chunks produced before deduplication."
    )
    vectors_upserted: int = Field(default=0, ge=0)
    index_recreated: bool = Field(
        default=False, description="True when a dimension mismatch forced a rebuild."
    )
    ingestion_time: float = Field(
        default=0.0, ge=0.0, description="Wall-clock seconds for the run."
    )


class IndexStats(BaseModel):
    """Snapshot of the vector index size."""

    model_config = ConfigDict(frozen=True)

    total_vectors: int = Field(default=0, ge=0)
    dimension: int | None = None
    namespaces: dict[str, int] = Field(default_factory=dict)


class DocumentSummary(BaseModel):
    """One uploaded document as seen through its stored chunks."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    chunk_count: int = Field(default=0, ge=0)
    last_updated: str | None = None


class UploadResult(BaseModel):
    """Outcome of an upload.  ``success=False`` means nothing was extractable."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    file_id: str | None = None
    file_name: str
    chunks: int = Field(default=0, ge=0)


class DeleteResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    deleted_count: int = Field(default=0, ge=0)
    message: str
