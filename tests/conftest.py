"""Shared pytest fixtures for the docchat test suite."""

from __future__ import annotations

import hashlib
import math
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.providers.vector_store.memory_provider import InMemoryVectorStore
from src.services.chat_service import ChatService
from src.services.document_service import DocumentService
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.deduplicator import NearDuplicateFilter
from src.services.ingestion.document_extractor import DocumentExtractor
from src.services.ingestion.ingestion_service import IngestionService
from src.services.retrieval.retrieval_service import RetrievalService

TEST_DIMENSION = 64


# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


class HashEmbeddingProvider(IEmbeddingProvider):
    """Deterministic bag-of-words embedding.

    Each lower-cased word is hashed into one of ``dimension`` buckets, so
    texts sharing vocabulary get a high cosine similarity.  No network.
    """

    def __init__(self, dimension: int = TEST_DIMENSION) -> None:
        self._dimension = dimension
        self.calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        values = [0.0] * self._dimension
        for word in text.lower().split():
            digest = hashlib.md5(word.strip(".,!?:;").encode("utf-8")).digest()
            values[digest[0] % self._dimension] += 1.0
        norm = math.sqrt(sum(v * v for v in values))
        if norm == 0.0:
            values[0] = 1.0
            return values
        return [v / norm for v in values]

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(text) for text in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        return self._vector(text)

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "hash-embedding"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Provider fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def embedding_provider() -> HashEmbeddingProvider:
    return HashEmbeddingProvider()


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore(dimension=TEST_DIMENSION)


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider; override ``complete.return_value`` per test."""
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.complete = AsyncMock(return_value="Here is the answer [1].")
    return mock


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ingestion_service(
    embedding_provider: HashEmbeddingProvider, vector_store: InMemoryVectorStore
) -> IngestionService:
    return IngestionService(
        chunker=TextChunker(chunk_size=200, overlap=40),
        deduplicator=NearDuplicateFilter(threshold=0.8),
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        upsert_batch_size=100,
    )


@pytest.fixture
def document_service(
    ingestion_service: IngestionService, vector_store: InMemoryVectorStore
) -> DocumentService:
    return DocumentService(
        extractor=DocumentExtractor(),
        ingestion=ingestion_service,
        vector_store=vector_store,
        max_file_size=1024 * 1024,
        embedding_dimension=TEST_DIMENSION,
        delete_page_size=3,
    )


@pytest.fixture
def retrieval_service(
    embedding_provider: HashEmbeddingProvider, vector_store: InMemoryVectorStore
) -> RetrievalService:
    return RetrievalService(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        default_top_k=3,
    )


@pytest.fixture
def chat_service(retrieval_service: RetrievalService, mock_llm_provider: ILLMProvider) -> ChatService:
    return ChatService(retrieval=retrieval_service, llm=mock_llm_provider, temperature=0.2)


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_document_text() -> str:
    """Multi-topic text long enough to produce several chunks."""
    return (
        "Solar panels convert sunlight into electricity using photovoltaic cells. "
        "Most residential installations produce between four and eight kilowatts. "
        "Panel efficiency has improved steadily over the last two decades.\n\n"
        "Heat pumps move heat instead of generating it, which makes them far more "
        "efficient than resistance heaters. A ground source heat pump uses the "
        "stable temperature below the surface as its reservoir.\n\n"
        "Battery storage lets a household keep surplus solar energy for the evening. "
        "Lithium iron phosphate chemistry is common because it tolerates many "
        "charge cycles without significant degradation."
    )
