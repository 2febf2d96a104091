"""Abstract base class for vector-store service providers.

Defines the contract for storing, searching and managing embedded chunk
records.  Implementations may wrap ChromaDB (local, persistent) or keep
everything in process memory; the RAG services never see the backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.rag import IndexStats, SearchMatch, VectorRecord


# Concrete implementations: ChromaDBProvider, InMemoryVectorStore
# Located in: src/providers/vector_store/
class IVectorStoreProvider(ABC):
    """Contract for vector-store services used by the RAG pipeline.

    All methods that touch storage are async.

    **Filter syntax** (the *filters* dict accepted by search, list and
    delete methods) is the one built by :mod:`src.services.retrieval.filters`:

    * ``{"source": {"$eq": "report.pdf"}}``
    * ``{"timestamp": {"$gte": "2024-01-01T00:00:00", "$lte": "..."}}``
    * ``{"chunkIndex": {"$gte": 0, "$lte": 10}}``

    Several keys are combined with logical AND.  ``None`` or ``{}`` means no
    filter at all, never "match nothing".

    **Errors**: a write whose vectors do not fit the index dimensionality
    raises :class:`~src.utils.errors.DimensionMismatchError`; every other
    backend failure raises :class:`~src.utils.errors.StoreError`.
    """

    @abstractmethod
    async def upsert(self, records: list[VectorRecord]) -> int:
        """Insert or overwrite records by id.  Returns the number written."""

    @abstractmethod
    async def search(
        self,
        vector: list[float],
        top_k: int,
        filters: dict[str, Any] | None = None,
        include_metadata: bool = True,
    ) -> list[SearchMatch]:
        """Return up to *top_k* matches ordered by descending score.

        Parameters
        ----------
        vector:
            Query embedding.
        top_k:
            Maximum number of matches.
        filters:
            Optional metadata filter (see class docstring).
        include_metadata:
            When ``False`` matches carry an empty metadata dict.
        """

    @abstractmethod
    async def delete_by_ids(self, ids: list[str]) -> int:
        """Delete records by id.  Unknown ids are ignored.  Returns the count deleted."""

    @abstractmethod
    async def delete_by_filter(self, filters: dict[str, Any]) -> int:
        """Delete every record matching *filters*.

        Raises
        ------
        src.utils.errors.StoreError
            If *filters* is empty; wiping the index goes through
            :meth:`list_records` and :meth:`delete_by_ids` instead.
        """

    @abstractmethod
    async def list_records(
        self,
        limit: int,
        offset: int = 0,
        filters: dict[str, Any] | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Return one page of ``(id, metadata)`` pairs in stable order."""

    @abstractmethod
    async def get_stats(self) -> IndexStats:
        """Return the current record count and index dimensionality."""

    @abstractmethod
    async def recreate_index(self, dimension: int) -> None:
        """Drop every record and rebuild the index for *dimension*-length vectors."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is reachable."""
