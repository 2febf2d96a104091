"""Unit tests for retrieval: filters, context assembly, citations and RetrievalService."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import SearchMatch
from src.services.retrieval import filters
from src.services.retrieval.context_builder import (
    CONTEXT_HEADER,
    NO_CONTEXT_MESSAGE,
    build_citations,
    build_context,
    preview,
)
from src.services.retrieval.retrieval_service import RetrievalService
from src.utils.errors import StoreError


def _match(
    match_id: str = "doc.txt-0",
    score: float = 0.91234,
    **metadata: object,
) -> SearchMatch:
    return SearchMatch(id=match_id, score=score, metadata=dict(metadata))


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class TestFilters:
    def test_builders(self) -> None:
        assert filters.by_source("a.pdf") == {"source": {"$eq": "a.pdf"}}
        assert filters.by_date_range("2024-01-01", "2024-12-31") == {
            "timestamp": {"$gte": "2024-01-01", "$lte": "2024-12-31"}
        }
        assert filters.by_chunk_index(2, 5) == {"chunkIndex": {"$gte": 2, "$lte": 5}}
        assert filters.by_file_type("pdf") == {"fileType": {"$eq": "pdf"}}

    def test_combine_merges_with_and_semantics(self) -> None:
        combined = filters.combine(filters.by_source("a.pdf"), filters.by_chunk_index(0, 3))
        assert combined == {
            "source": {"$eq": "a.pdf"},
            "chunkIndex": {"$gte": 0, "$lte": 3},
        }

    @pytest.mark.parametrize(
        "bad",
        [None, {}, "source=a", [("source", "a")], {"source": "a.pdf"}, {"source": {}}, {1: {"$eq": 1}}],
    )
    def test_malformed_filters_are_skipped(self, bad: object) -> None:
        assert filters.combine(bad) is None
        assert filters.normalize_filters(bad) is None

    def test_combine_keeps_valid_entries_among_invalid(self) -> None:
        assert filters.combine({}, None, filters.by_source("x")) == {"source": {"$eq": "x"}}


# ---------------------------------------------------------------------------
# Context and citations
# ---------------------------------------------------------------------------


class TestBuildContext:
    def test_no_matches(self) -> None:
        assert build_context([]) == NO_CONTEXT_MESSAGE

    def test_formats_numbered_entries(self) -> None:
        context = build_context(
            [
                _match(source="a.pdf", title="Alpha", summary="First.", text="Alpha body"),
                _match("b.txt-3", 0.5, source="b.txt", text="Beta body"),
            ]
        )

        assert context == (
            CONTEXT_HEADER
            + "[1] Source: a.pdf (Score: 0.912)\n"
            + "Title: Alpha\n"
            + "Summary: First.\n"
            + "Content: Alpha body\n\n"
            + "[2] Source: b.txt (Score: 0.500)\n"
            + "Content: Beta body\n\n"
        )

    def test_missing_metadata_never_fails(self) -> None:
        context = build_context([SearchMatch(id="x", score=-0.25)])
        assert "[1] Source: Unknown source (Score: -0.250)" in context
        assert "Content: \n" in context


class TestBuildCitations:
    def test_one_citation_per_match_in_order(self) -> None:
        citations = build_citations(
            [
                _match("a-0", 0.9, source="a.pdf", text="Alpha", page=3),
                _match("b-1", 0.8, source="b.txt", text="Beta"),
            ]
        )

        assert [c.id for c in citations] == ["a-0", "b-1"]
        assert citations[0].content == "Alpha"
        assert citations[0].source == "a.pdf"
        assert citations[0].page == 3
        assert citations[1].page is None
        assert citations[0].metadata["source"] == "a.pdf"

    def test_defaults_for_missing_fields(self) -> None:
        citation = build_citations([SearchMatch(id="", score=0.1)])[0]
        assert citation.id == "citation-0"
        assert citation.content == ""
        assert citation.source == "Unknown source"

    @pytest.mark.parametrize(("page", "expected"), [("7", 7), ("vii", None), (True, None), (2.5, None)])
    def test_page_parsing(self, page: object, expected: int | None) -> None:
        citation = build_citations([_match(page=page)])[0]
        assert citation.page == expected


def test_preview_truncates_and_marks() -> None:
    context = "x" * 500
    assert preview(context) == "x" * 200 + "..."
    assert preview("short") == "short..."


# ---------------------------------------------------------------------------
# RetrievalService
# ---------------------------------------------------------------------------


class TestRetrievalService:
    @pytest.mark.asyncio
    async def test_retrieves_most_similar_document_first(
        self, ingestion_service, retrieval_service, sample_document_text: str
    ) -> None:
        await ingestion_service.ingest(sample_document_text, source="energy.txt")

        result = await retrieval_service.retrieve("ground source heat pump temperature")

        assert 0 < len(result.matches) <= 3
        assert "heat" in result.matches[0].metadata["text"].lower()
        assert result.context.startswith(CONTEXT_HEADER)
        assert [c.id for c in result.citations] == [m.id for m in result.matches]

    @pytest.mark.asyncio
    async def test_empty_index_gives_no_context(self, retrieval_service) -> None:
        result = await retrieval_service.retrieve("anything")
        assert result.matches == []
        assert result.context == NO_CONTEXT_MESSAGE
        assert result.citations == []

    @pytest.mark.asyncio
    async def test_passes_top_k_and_normalized_filters(self) -> None:
        embedding = MagicMock(spec=IEmbeddingProvider)
        embedding.embed_single = AsyncMock(return_value=[0.1, 0.2])
        store = MagicMock(spec=IVectorStoreProvider)
        store.search = AsyncMock(return_value=[])
        service = RetrievalService(embedding_provider=embedding, vector_store=store, default_top_k=5)

        await service.retrieve("q", filters={})
        store.search.assert_awaited_with([0.1, 0.2], top_k=5, filters=None, include_metadata=True)

        await service.retrieve("q", top_k=2, filters=filters.by_source("a.pdf"))
        store.search.assert_awaited_with(
            [0.1, 0.2], top_k=2, filters={"source": {"$eq": "a.pdf"}}, include_metadata=True
        )

    @pytest.mark.asyncio
    async def test_store_errors_propagate(self) -> None:
        embedding = MagicMock(spec=IEmbeddingProvider)
        embedding.embed_single = AsyncMock(return_value=[0.1])
        store = MagicMock(spec=IVectorStoreProvider)
        store.search = AsyncMock(side_effect=StoreError("down", provider_name="mock"))
        service = RetrievalService(embedding_provider=embedding, vector_store=store)

        with pytest.raises(StoreError):
            await service.retrieve("q")
