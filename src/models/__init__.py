"""docchat domain models -- re-exports all public model classes.

Import from ``src.models`` rather than the individual modules:

    - rag.py   -- chunks, vector records, matches, citations, ingestion results
    - chat.py  -- conversation turns, prompt modes, chat results and metrics
"""

from __future__ import annotations

from src.models.chat import ChatMetrics, ChatResult, ChatTurn, PromptMode
from src.models.rag import (
    Chunk,
    ChunkMetadata,
    Citation,
    DeleteResult,
    DocumentSummary,
    IndexStats,
    IngestionResult,
    RetrievalResult,
    SearchMatch,
    UploadResult,
    VectorRecord,
    make_record_id,
)

__all__ = [
    "ChatMetrics",
    "ChatResult",
    "ChatTurn",
    "Chunk",
    "ChunkMetadata",
    "Citation",
    "DeleteResult",
    "DocumentSummary",
    "IndexStats",
    "IngestionResult",
    "PromptMode",
    "RetrievalResult",
    "SearchMatch",
    "UploadResult",
    "VectorRecord",
    "make_record_id",
]
