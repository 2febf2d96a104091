"""Integration tests for the HTTP API.

The real app (middleware stack and router) is built with ``create_app``;
``app.state`` is populated by hand with in-memory providers, a hash-based
embedder and a mock LLM, so no network or disk is touched.  The lifespan
never runs because the TestClient is not used as a context manager.
"""

from __future__ import annotations

from typing import Any

import fitz
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.interfaces.llm_provider import ILLMProvider
from src.main import create_app
from src.providers.rate_limit.memory_rate_limiter import MemoryRateLimiter
from src.providers.vector_store.memory_provider import InMemoryVectorStore
from src.services.chat_service import ChatService
from src.services.document_service import DocumentService
from src.utils.errors import LLMError
from tests.conftest import HashEmbeddingProvider

_UPLOAD = "/api/v1/documents/upload"


def _make_pdf(text: str) -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def _build_app(
    embedding_provider: HashEmbeddingProvider,
    vector_store: InMemoryVectorStore,
    llm: ILLMProvider,
    document_service: DocumentService,
    chat_service: ChatService,
    max_requests: int = 1000,
) -> FastAPI:
    app = create_app()
    state: dict[str, Any] = {
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "llm_provider": llm,
        "document_service": document_service,
        "chat_service": chat_service,
        "rate_limiter": MemoryRateLimiter(max_requests=max_requests, window_seconds=60.0),
        "version": "0.1.0-test",
    }
    for key, value in state.items():
        setattr(app.state, key, value)
    return app


@pytest.fixture
def app(
    embedding_provider: HashEmbeddingProvider,
    vector_store: InMemoryVectorStore,
    mock_llm_provider: ILLMProvider,
    document_service: DocumentService,
    chat_service: ChatService,
) -> FastAPI:
    return _build_app(
        embedding_provider, vector_store, mock_llm_provider, document_service, chat_service
    )


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def _upload_text(client: TestClient, name: str, text: str) -> dict[str, Any]:
    response = client.post(_UPLOAD, files={"file": (name, text.encode(), "text/plain")})
    assert response.status_code == 200, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


class TestUpload:
    def test_text_upload(self, client: TestClient, sample_document_text: str) -> None:
        body = _upload_text(client, "energy.txt", sample_document_text)

        assert body["success"] is True
        assert body["file_name"] == "energy.txt"
        assert body["chunks"] > 1
        assert body["message"] == f"File processed successfully. Created {body['chunks']} chunks."

    def test_pdf_upload(self, client: TestClient) -> None:
        data = _make_pdf("Quarterly revenue grew by twelve percent.")

        response = client.post(_UPLOAD, files={"file": ("report.pdf", data, "application/pdf")})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["chunks"] == 1

    def test_unsupported_type(self, client: TestClient) -> None:
        response = client.post(_UPLOAD, files={"file": ("photo.png", b"\x89PNG....", "image/png")})

        assert response.status_code == 415
        assert response.json() == {
            "error": "UnsupportedFileTypeError",
            "detail": "Invalid file type. Only .txt and .pdf files are allowed.",
        }

    def test_too_large(self, client: TestClient) -> None:
        data = b"a" * (2 * 1024 * 1024)

        response = client.post(_UPLOAD, files={"file": ("big.txt", data, "text/plain")})

        assert response.status_code == 413
        assert response.json()["detail"] == (
            "File size too large. File size: 2MB, Maximum allowed: 1MB."
        )

    def test_empty_file(self, client: TestClient) -> None:
        response = client.post(_UPLOAD, files={"file": ("empty.txt", b"", "text/plain")})
        assert response.status_code == 400
        assert response.json()["error"] == "EmptyFileError"

    def test_missing_file(self, client: TestClient) -> None:
        response = client.post(_UPLOAD)
        assert response.status_code == 400
        assert response.json()["detail"] == "No file provided"

    def test_no_extractable_text(self, client: TestClient, vector_store: InMemoryVectorStore) -> None:
        response = client.post(_UPLOAD, files={"file": ("blank.txt", b"----\n12\n", "text/plain")})

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["chunks"] == 0
        assert vector_store.upsert_calls == 0


# ---------------------------------------------------------------------------
# Documents and index
# ---------------------------------------------------------------------------


class TestDocuments:
    def test_list_and_delete(self, client: TestClient, sample_document_text: str) -> None:
        energy = _upload_text(client, "energy.txt", sample_document_text)
        _upload_text(client, "memo.txt", "Short internal memo about parking.")

        listed = client.get("/api/v1/documents").json()
        assert listed["success"] is True
        assert [d["file_name"] for d in listed["documents"]] == ["energy.txt", "memo.txt"]
        assert listed["documents"][0]["chunk_count"] == energy["chunks"]

        response = client.request("DELETE", "/api/v1/documents", json={"fileName": "energy.txt"})
        assert response.status_code == 200
        assert response.json()["deleted_count"] == energy["chunks"]

        remaining = client.get("/api/v1/documents").json()["documents"]
        assert [d["file_name"] for d in remaining] == ["memo.txt"]

    def test_delete_all(self, client: TestClient, sample_document_text: str) -> None:
        _upload_text(client, "energy.txt", sample_document_text)

        response = client.request("DELETE", "/api/v1/documents", json={"delete_all": True})

        assert response.status_code == 200
        assert response.json()["message"] == "All documents deleted successfully"
        assert client.get("/api/v1/index/stats").json()["total_vectors"] == 0

    def test_delete_without_target(self, client: TestClient) -> None:
        response = client.request("DELETE", "/api/v1/documents", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequestError"

    def test_stats(self, client: TestClient) -> None:
        _upload_text(client, "memo.txt", "Short internal memo about parking.")

        body = client.get("/api/v1/index/stats").json()

        assert body["success"] is True
        assert body["total_vectors"] == 1
        assert body["dimension"] == 64

    def test_recreate_requires_confirm(self, client: TestClient) -> None:
        _upload_text(client, "memo.txt", "Short internal memo about parking.")

        refused = client.post("/api/v1/index/recreate", json={})
        assert refused.status_code == 400
        assert client.get("/api/v1/index/stats").json()["total_vectors"] == 1

        accepted = client.post("/api/v1/index/recreate", json={"confirm": True})
        assert accepted.status_code == 200
        assert accepted.json()["total_vectors"] == 0
        assert accepted.json()["message"] == "Index recreated with 64 dimensions"


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class TestChat:
    def test_chat_answers_with_citations(
        self, client: TestClient, mock_llm_provider: ILLMProvider, sample_document_text: str
    ) -> None:
        _upload_text(client, "energy.txt", sample_document_text)

        response = client.post(
            "/api/v1/chat",
            json={"messages": [{"role": "user", "content": "How efficient are heat pumps?"}]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["response"] == "Here is the answer [1]."
        assert body["citations"]
        assert all(c["source"] == "energy.txt" for c in body["citations"])
        assert body["context"].startswith("Retrieved Context:")
        assert body["metrics"]["query"] == "How efficient are heat pumps?"
        assert body["metrics"]["mode"] == "default"
        assert body["metrics"]["has_citations"] is True
        mock_llm_provider.complete.assert_awaited_once()

    def test_chat_ad_sample_mode(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/chat",
            json={"messages": [{"role": "user", "content": "Write three Facebook ad samples"}]},
        )
        assert response.status_code == 200
        assert response.json()["metrics"]["mode"] == "ad_samples"

    def test_chat_empty_messages(self, client: TestClient) -> None:
        response = client.post("/api/v1/chat", json={"messages": []})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequestError"

    def test_chat_invalid_role_is_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/chat", json={"messages": [{"role": "system", "content": "hi"}]}
        )
        assert response.status_code == 422

    def test_llm_failure_maps_to_502(self, client: TestClient, mock_llm_provider: ILLMProvider) -> None:
        mock_llm_provider.complete.side_effect = LLMError("upstream down", provider_name="mock-llm")

        response = client.post(
            "/api/v1/chat", json={"messages": [{"role": "user", "content": "hello"}]}
        )

        assert response.status_code == 502
        assert response.json() == {"error": "LLMError", "detail": "upstream down"}

    def test_unexpected_error_is_generic_500(
        self, client: TestClient, mock_llm_provider: ILLMProvider
    ) -> None:
        mock_llm_provider.complete.side_effect = RuntimeError("secret internals")

        response = client.post(
            "/api/v1/chat", json={"messages": [{"role": "user", "content": "hello"}]}
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": "InternalServerError",
            "detail": "An unexpected error occurred",
        }
        assert "secret internals" not in response.text


# ---------------------------------------------------------------------------
# Health and rate limiting
# ---------------------------------------------------------------------------


class TestHealthAndRateLimit:
    def test_health(self, client: TestClient) -> None:
        body = client.get("/api/v1/health").json()

        assert body["status"] == "healthy"
        assert body["version"] == "0.1.0-test"
        assert body["providers"]["vector_store"] == {"name": "memory", "available": True}
        assert body["providers"]["embedding_provider"]["name"] == "hash-embedding"

    def test_rate_limit_rejects_excess_requests(
        self,
        embedding_provider: HashEmbeddingProvider,
        vector_store: InMemoryVectorStore,
        mock_llm_provider: ILLMProvider,
        document_service: DocumentService,
        chat_service: ChatService,
    ) -> None:
        app = _build_app(
            embedding_provider,
            vector_store,
            mock_llm_provider,
            document_service,
            chat_service,
            max_requests=2,
        )
        client = TestClient(app)

        statuses = [client.get("/api/v1/documents").status_code for _ in range(3)]

        assert statuses == [200, 200, 429]
        rejected = client.get("/api/v1/index/stats")
        assert rejected.status_code == 429
        assert rejected.json()["error"] == "RateLimitError"
        assert client.get("/api/v1/health").status_code == 429

    def test_health_counts_against_the_limit(
        self,
        embedding_provider: HashEmbeddingProvider,
        vector_store: InMemoryVectorStore,
        mock_llm_provider: ILLMProvider,
        document_service: DocumentService,
        chat_service: ChatService,
    ) -> None:
        app = _build_app(
            embedding_provider,
            vector_store,
            mock_llm_provider,
            document_service,
            chat_service,
            max_requests=1,
        )
        client = TestClient(app)

        assert client.get("/api/v1/health").status_code == 200
        assert client.get("/api/v1/documents").status_code == 429
