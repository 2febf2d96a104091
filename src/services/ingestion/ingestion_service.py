"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **normalize -> chunk -> dedupe -> embed -> store**.

The :class:`IngestionService` coordinates its collaborators (chunker,
near-duplicate filter, embedding provider, vector store) without any of them
knowing about each other.  All dependencies are injected via the
constructor, so tests run the whole pipeline against in-memory fakes.

Embedding is sequential, one chunk at a time, and every vector is checked
before it is buffered.  Records are flushed to the store in fixed-size
batches; a failure part-way through leaves earlier batches stored.
"""

from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from src.models.rag import (
    Chunk,
    ChunkMetadata,
    IngestionResult,
    VectorRecord,
    make_record_id,
)
from src.utils.errors import DimensionMismatchError, EmbeddingValidationError, StoreError
from src.utils.text_normalizer import normalize_document_text

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.vector_store_provider import IVectorStoreProvider
    from src.services.ingestion.chunker import TextChunker
    from src.services.ingestion.deduplicator import NearDuplicateFilter

logger = structlog.get_logger(logger_name=__name__)

# Normalized text shorter than this is ingested but flagged in the log.
_LOW_TEXT_WARNING_CHARS = 50


def validate_embedding(values: object, dimension: int) -> list[float]:
    """Return *values* as a list of floats or raise :class:`EmbeddingValidationError`.

    The vector must have exactly *dimension* components, each a finite real
    number.  Booleans are rejected even though they subclass ``int``.
    """
    if not isinstance(values, (list, tuple)):
        raise EmbeddingValidationError(
            f"Embedding generation failed: expected a list, got {type(values).__name__}"
        )
    if len(values) != dimension:
        raise EmbeddingValidationError(
            f"Embedding has invalid length: {len(values)}. Expected {dimension}."
        )
    for value in values:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise EmbeddingValidationError("Embedding contains non-numeric values")
        if not math.isfinite(value):
            raise EmbeddingValidationError("Embedding contains non-finite numbers")
    return [float(v) for v in values]


class _BatchWriter:
    """Buffers records for one ``ingest`` call and flushes them in batches.

    Owns the single allowed index recreation for the call.
    """

    def __init__(
        self,
        vector_store: IVectorStoreProvider,
        batch_size: int,
        dimension: int,
        allow_recreation: bool,
        source: str,
    ) -> None:
        self._store = vector_store
        self._batch_size = batch_size
        self._dimension = dimension
        self._allow_recreation = allow_recreation
        self._source = source
        self._pending: list[VectorRecord] = []
        self.upserted = 0
        self.recreated = False

    async def add(self, record: VectorRecord) -> None:
        self._pending.append(record)
        if len(self._pending) >= self._batch_size:
            await self.flush()

    async def flush(self) -> None:
        if not self._pending:
            return
        batch, self._pending = self._pending, []
        try:
            written = await self._store.upsert(batch)
        except DimensionMismatchError as exc:
            if not self._allow_recreation or self.recreated:
                logger.error(
                    "upsert_dimension_mismatch",
                    source=self._source,
                    batch=len(batch),
                    recreation_allowed=self._allow_recreation,
                )
                raise
            written = await self._recreate_and_retry(batch, exc)

        self.upserted += written
        logger.debug("vectors_upserted", source=self._source, count=written)

    async def _recreate_and_retry(
        self, batch: list[VectorRecord], cause: DimensionMismatchError
    ) -> int:
        logger.warning(
            "recreating_index_after_dimension_mismatch",
            source=self._source,
            dimension=self._dimension,
            error=str(cause),
        )
        self.recreated = True
        try:
            await self._store.recreate_index(self._dimension)
            return await self._store.upsert(batch)
        except StoreError as exc:
            raise StoreError(
                f"Failed to recreate index and store embeddings: {exc.message}",
                provider_name=exc.provider_name,
            ) from exc


class IngestionService:
    """Turns one document's text into stored, embedded chunk records.

    Parameters
    ----------
    chunker:
        Splits normalized text into overlapping windows.
    deduplicator:
        Drops near-duplicate chunks before any embedding work.
    embedding_provider:
        Generates one vector per chunk.
    vector_store:
        Receives the records in batches.
    upsert_batch_size:
        Maximum records per upsert call (default 100).
    allow_index_recreation:
        When ``True``, a dimension mismatch on upsert drops and rebuilds the
        index once per call and retries.  Off by default because rebuilding
        deletes every stored document.
    """

    def __init__(
        self,
        chunker: TextChunker,
        deduplicator: NearDuplicateFilter,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        upsert_batch_size: int = 100,
        allow_index_recreation: bool = False,
    ) -> None:
        if upsert_batch_size <= 0:
            raise ValueError(f"upsert_batch_size must be positive, got {upsert_batch_size}")
        self._chunker = chunker
        self._deduplicator = deduplicator
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._upsert_batch_size = upsert_batch_size
        self._allow_index_recreation = allow_index_recreation

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, raw_text: str, source: str) -> IngestionResult:
        """Run the full pipeline for one document.

        Parameters
        ----------
        raw_text:
            Extracted document text; normalized here.
        source:
            The document's file name.  Record ids derive from it, so
            re-ingesting the same name overwrites same-index chunks.

        Returns
        -------
        IngestionResult
            ``chunk_count`` is the number of chunks stored after
            deduplication; 0 for an empty document, in which case neither the
            embedding provider nor the store is called.

        Raises
        ------
        EmbeddingError
            If an embedding call fails or a vector fails validation.
        StoreError
            If an upsert fails (including an unrecovered dimension mismatch).
        """
        start = time.monotonic()

        text = normalize_document_text(raw_text)
        chunks = self._chunker.chunk(text)
        if not chunks:
            logger.info("ingestion_skipped_empty_document", source=source)
            return self._empty_result(source)
        if len(text) < _LOW_TEXT_WARNING_CHARS:
            logger.warning("ingestion_low_text_content", source=source, chars=len(text))

        unique_chunks = self._deduplicator.dedupe(chunks)
        logger.info(
            "chunks_prepared",
            source=source,
            original_chunks=len(chunks),
            unique_chunks=len(unique_chunks),
        )

        writer = _BatchWriter(
            self._vector_store,
            batch_size=self._upsert_batch_size,
            dimension=self._embedding_provider.get_dimension(),
            allow_recreation=self._allow_index_recreation,
            source=source,
        )
        for chunk in unique_chunks:
            record = await self._embed_chunk(chunk, source)
            await writer.add(record)
        await writer.flush()

        result = IngestionResult(
            source=source,
            chunk_count=len(unique_chunks),
            original_chunk_count=len(chunks),
            vectors_upserted=writer.upserted,
            index_recreated=writer.recreated,
            ingestion_time=round(time.monotonic() - start, 2),
        )
        logger.info(
            "ingestion_complete",
            source=source,
            chunks=result.chunk_count,
            vectors=result.vectors_upserted,
            index_recreated=result.index_recreated,
            time_s=result.ingestion_time,
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _embed_chunk(self, chunk: Chunk, source: str) -> VectorRecord:
        raw_vector = await self._embedding_provider.embed_single(chunk.text)
        try:
            values = validate_embedding(raw_vector, self._embedding_provider.get_dimension())
        except EmbeddingValidationError as exc:
            logger.error(
                "embedding_validation_failed",
                source=source,
                chunk_index=chunk.index,
                error=exc.message,
            )
            raise EmbeddingValidationError(
                f"Failed to generate embedding for chunk {chunk.index}: {exc.message}",
                provider_name=self._embedding_provider.get_provider_name(),
            ) from exc

        return VectorRecord(
            id=make_record_id(source, chunk.index),
            values=values,
            metadata=ChunkMetadata(
                text=chunk.text,
                title=chunk.title,
                summary=chunk.summary,
                source=source,
                chunk_index=chunk.index,
                timestamp=datetime.now(timezone.utc).isoformat(),
            ),
        )

    @staticmethod
    def _empty_result(source: str) -> IngestionResult:
        return IngestionResult(source=source, chunk_count=0, ingestion_time=0.0)
