"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
The collection uses cosine distance; scores are reported as
``1 - distance`` (cosine similarity), unclamped.  Fully local: the index
lives under ``CHROMADB_PERSIST_DIR``.
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any

# ChromaDB's bundled PostHog telemetry client breaks against newer posthog
# releases ("capture() takes 1 positional argument but 3 were given").
# Disable it through the env var and the SDK flag before chromadb is
# imported; PersistentClient also gets Settings(anonymized_telemetry=False).
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import IndexStats, SearchMatch, VectorRecord
from src.utils.errors import DimensionMismatchError, StoreError

logger = structlog.get_logger(logger_name=__name__)

# Chroma only compares numbers with $gte/$lte, so the ISO timestamp is
# mirrored into an epoch-seconds field used for range filters.
_EPOCH_KEY = "timestampEpoch"
_RANGE_OPERATORS = ("$gte", "$lte")


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Keeps ChromaDB from loading its default ONNX embedding model.

    docchat always passes pre-computed vectors, so the collection's own
    embedding function must never run.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "docchat uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        return "noop_precomputed"


def _to_epoch(value: Any) -> float | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
        except ValueError:
            return None
    return None


def _is_dimension_error(exc: Exception) -> bool:
    return "dimension" in str(exc).lower()


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    Parameters
    ----------
    persist_directory:
        Directory holding the ChromaDB SQLite file and HNSW segments.
    collection_name:
        Name of the collection holding docchat records.
    dimension:
        Expected vector length, recorded in the collection metadata.
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "docchat_documents",
        dimension: int = 3072,
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._dimension = dimension
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._collection = self._open_collection()

    def _open_collection(self) -> Any:
        metadata = {"hnsw:space": "cosine", "dimension": self._dimension}
        # Collections persisted with a different embedding function reject
        # the no-op one; reopen without it in that case.
        try:
            return self._client.get_or_create_collection(
                name=self._collection_name,
                metadata=metadata,
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            return self._client.get_or_create_collection(
                name=self._collection_name,
                metadata=metadata,
            )

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        metadatas: list[dict[str, Any]] = []
        for record in records:
            metadata = record.metadata_dict()
            epoch = _to_epoch(metadata.get("timestamp"))
            if epoch is not None:
                metadata[_EPOCH_KEY] = epoch
            metadatas.append(metadata)

        try:
            self._collection.upsert(
                ids=[r.id for r in records],
                embeddings=[r.values for r in records],
                documents=[r.metadata.text for r in records],
                metadatas=metadatas,
            )
        except Exception as exc:
            if _is_dimension_error(exc):
                raise DimensionMismatchError(
                    message=f"ChromaDB rejected vectors of dimension {len(records[0].values)}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise StoreError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_upsert", count=len(records))
        return len(records)

    async def search(
        self,
        vector: list[float],
        top_k: int,
        filters: dict[str, Any] | None = None,
        include_metadata: bool = True,
    ) -> list[SearchMatch]:
        try:
            total = self._collection.count()
            if total == 0 or top_k <= 0:
                return []

            include = ["metadatas", "distances"] if include_metadata else ["distances"]
            kwargs: dict[str, Any] = {
                "query_embeddings": [vector],
                "n_results": min(top_k, total),
                "include": include,
            }
            where = self._translate_filters(filters)
            if where:
                kwargs["where"] = where

            results = self._collection.query(**kwargs)
        except Exception as exc:
            if _is_dimension_error(exc):
                raise DimensionMismatchError(
                    message=f"ChromaDB query dimension mismatch: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise StoreError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        ids = results["ids"][0] if results.get("ids") else []
        distances = results["distances"][0] if results.get("distances") else [1.0] * len(ids)
        raw_metadatas = results.get("metadatas") if include_metadata else None
        metadatas = raw_metadatas[0] if raw_metadatas else [None] * len(ids)

        matches = [
            SearchMatch(
                id=record_id,
                score=1.0 - float(distance),
                metadata=self._public_metadata(metadata),
            )
            for record_id, distance, metadata in zip(ids, distances, metadatas, strict=True)
        ]
        logger.debug("chromadb_query", top_k=top_k, results=len(matches))
        return matches

    async def delete_by_ids(self, ids: list[str]) -> int:
        if not ids:
            return 0
        try:
            existing = self._collection.get(ids=ids, include=[])
            found = list(existing["ids"] or [])
            if found:
                self._collection.delete(ids=found)
        except Exception as exc:
            raise StoreError(
                message=f"ChromaDB delete_by_ids failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_delete_by_ids", requested=len(ids), deleted=len(found))
        return len(found)

    async def delete_by_filter(self, filters: dict[str, Any]) -> int:
        where = self._translate_filters(filters)
        if not where:
            raise StoreError(
                message="delete_by_filter requires a non-empty filter",
                provider_name=self.get_provider_name(),
            )
        try:
            existing = self._collection.get(where=where, include=[])
            found = list(existing["ids"] or [])
            if found:
                self._collection.delete(ids=found)
        except Exception as exc:
            raise StoreError(
                message=f"ChromaDB delete_by_filter failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_delete_by_filter", where=where, deleted=len(found))
        return len(found)

    async def list_records(
        self,
        limit: int,
        offset: int = 0,
        filters: dict[str, Any] | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        kwargs: dict[str, Any] = {"limit": limit, "offset": offset, "include": ["metadatas"]}
        where = self._translate_filters(filters)
        if where:
            kwargs["where"] = where
        try:
            page = self._collection.get(**kwargs)
        except Exception as exc:
            raise StoreError(
                message=f"ChromaDB list_records failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        ids = page["ids"] or []
        metadatas = page["metadatas"] or [None] * len(ids)
        return [(rid, self._public_metadata(meta)) for rid, meta in zip(ids, metadatas, strict=True)]

    async def get_stats(self) -> IndexStats:
        try:
            count = self._collection.count()
            dimension: int | None = self._dimension
            if count:
                sample = self._collection.peek(limit=1)
                embeddings = sample.get("embeddings") if sample else None
                if embeddings is not None and len(embeddings) > 0:
                    dimension = len(embeddings[0])
        except Exception as exc:
            raise StoreError(
                message=f"ChromaDB get_stats failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return IndexStats(
            total_vectors=count,
            dimension=dimension,
            namespaces={self._collection_name: count},
        )

    async def recreate_index(self, dimension: int) -> None:
        try:
            try:
                self._client.delete_collection(self._collection_name)
            except Exception as exc:
                # Missing collection: nothing to drop.
                logger.debug("chromadb_delete_collection_skipped", error=str(exc))
            self._dimension = dimension
            self._collection = self._open_collection()
        except Exception as exc:
            raise StoreError(
                message=f"ChromaDB recreate_index failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.warning(
            "chromadb_index_recreated",
            collection=self._collection_name,
            dimension=dimension,
        )

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB collection is accessible."""
        try:
            self._collection.count()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _public_metadata(metadata: dict[str, Any] | None) -> dict[str, Any]:
        if not metadata:
            return {}
        return {k: v for k, v in metadata.items() if k != _EPOCH_KEY}

    @staticmethod
    def _translate_filters(filters: dict[str, Any] | None) -> dict[str, Any] | None:
        """Translate the common filter syntax to a ChromaDB ``where`` clause.

        ``$eq`` passes through; ``$gte``/``$lte`` on ``timestamp`` are
        rewritten against the epoch mirror field.  Each operator becomes its
        own clause and several clauses are joined with ``$and``.
        """
        if not filters:
            return None

        clauses: list[dict[str, Any]] = []
        for key, clause in filters.items():
            if not isinstance(clause, dict):
                continue
            if "$eq" in clause:
                clauses.append({key: {"$eq": clause["$eq"]}})
            for operator in _RANGE_OPERATORS:
                if operator not in clause:
                    continue
                if key == "timestamp":
                    epoch = _to_epoch(clause[operator])
                    if epoch is not None:
                        clauses.append({_EPOCH_KEY: {operator: epoch}})
                else:
                    clauses.append({key: {operator: clause[operator]}})

        if not clauses:
            return None
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}
