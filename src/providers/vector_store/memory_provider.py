"""In-process vector store.

Keeps records in a dict and ranks them by brute-force cosine similarity.
Used for local development (``VECTOR_STORE=memory``) and as the store behind
the test suite.  It enforces a fixed index dimension exactly like a real
backend, so dimension-mismatch handling can be exercised without ChromaDB.
"""

from __future__ import annotations

import math
from typing import Any

import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import IndexStats, SearchMatch, VectorRecord
from src.services.retrieval.filters import SUPPORTED_OPERATORS
from src.utils.errors import DimensionMismatchError, StoreError

logger = structlog.get_logger(logger_name=__name__)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


def usable_filters(filters: dict[str, Any] | None) -> dict[str, dict[str, Any]]:
    """Keep only the supported operators of each dict clause; drop everything else."""
    usable: dict[str, dict[str, Any]] = {}
    for key, clause in (filters or {}).items():
        if not isinstance(clause, dict):
            continue
        kept = {op: value for op, value in clause.items() if op in SUPPORTED_OPERATORS}
        if kept:
            usable[key] = kept
    return usable


def matches_filter(metadata: dict[str, Any], filters: dict[str, Any] | None) -> bool:
    """Evaluate the ``$eq``/``$gte``/``$lte`` filter syntax against *metadata*."""
    if not filters:
        return True
    for key, clause in filters.items():
        if not isinstance(clause, dict):
            continue
        if key not in metadata:
            return False
        value = metadata[key]
        try:
            if "$eq" in clause and value != clause["$eq"]:
                return False
            if "$gte" in clause and value < clause["$gte"]:
                return False
            if "$lte" in clause and value > clause["$lte"]:
                return False
        except TypeError:
            return False
    return True


class InMemoryVectorStore(IVectorStoreProvider):
    """Dict-backed :class:`IVectorStoreProvider` with a fixed dimension.

    Parameters
    ----------
    dimension:
        Vector length the index accepts.  Writing any other length raises
        :class:`DimensionMismatchError` until :meth:`recreate_index` is
        called with the new length.
    """

    def __init__(self, dimension: int) -> None:
        self._dimension = dimension
        self._records: dict[str, tuple[list[float], dict[str, Any]]] = {}
        self.upsert_calls = 0

    @property
    def dimension(self) -> int:
        return self._dimension

    async def upsert(self, records: list[VectorRecord]) -> int:
        self.upsert_calls += 1
        for record in records:
            if len(record.values) != self._dimension:
                raise DimensionMismatchError(
                    message=(
                        f"Vector dimension {len(record.values)} does not match "
                        f"the dimension of the index {self._dimension}"
                    ),
                    provider_name=self.get_provider_name(),
                )
        for record in records:
            self._records[record.id] = (list(record.values), record.metadata_dict())
        return len(records)

    async def search(
        self,
        vector: list[float],
        top_k: int,
        filters: dict[str, Any] | None = None,
        include_metadata: bool = True,
    ) -> list[SearchMatch]:
        if len(vector) != self._dimension:
            raise DimensionMismatchError(
                message=f"Query dimension {len(vector)} does not match index {self._dimension}",
                provider_name=self.get_provider_name(),
            )
        scored = [
            (cosine_similarity(vector, values), record_id, metadata)
            for record_id, (values, metadata) in self._records.items()
            if matches_filter(metadata, filters)
        ]
        scored.sort(key=lambda item: item[0], reverse=True)
        return [
            SearchMatch(
                id=record_id,
                score=score,
                metadata=dict(metadata) if include_metadata else {},
            )
            for score, record_id, metadata in scored[: max(top_k, 0)]
        ]

    async def delete_by_ids(self, ids: list[str]) -> int:
        deleted = 0
        for record_id in ids:
            if self._records.pop(record_id, None) is not None:
                deleted += 1
        return deleted

    async def delete_by_filter(self, filters: dict[str, Any]) -> int:
        usable = usable_filters(filters)
        if not usable:
            raise StoreError(
                message="delete_by_filter requires a non-empty filter",
                provider_name=self.get_provider_name(),
            )
        doomed = [rid for rid, (_, meta) in self._records.items() if matches_filter(meta, usable)]
        return await self.delete_by_ids(doomed)

    async def list_records(
        self,
        limit: int,
        offset: int = 0,
        filters: dict[str, Any] | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        selected = [
            (rid, dict(meta))
            for rid, (_, meta) in self._records.items()
            if matches_filter(meta, filters)
        ]
        return selected[offset : offset + limit]

    async def get_stats(self) -> IndexStats:
        return IndexStats(
            total_vectors=len(self._records),
            dimension=self._dimension,
            namespaces={"": len(self._records)},
        )

    async def recreate_index(self, dimension: int) -> None:
        logger.warning("memory_index_recreated", old_dimension=self._dimension, dimension=dimension)
        self._records.clear()
        self._dimension = dimension

    def get_provider_name(self) -> str:
        return "memory"

    def is_available(self) -> bool:
        return True
