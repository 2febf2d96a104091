"""Retrieval side of the RAG pipeline: search, context assembly and citations."""

from src.services.retrieval import filters
from src.services.retrieval.context_builder import (
    NO_CONTEXT_MESSAGE,
    build_citations,
    build_context,
)
from src.services.retrieval.retrieval_service import RetrievalService

__all__ = [
    "NO_CONTEXT_MESSAGE",
    "RetrievalService",
    "build_citations",
    "build_context",
    "filters",
]
