"""Document management: upload, listing, deletion and index administration.

This is the service behind the ``/documents`` and ``/index`` routes and the
operator CLI.  It validates uploads before any parsing work, extracts raw
text, and hands it to :class:`IngestionService`, which normalizes it once.

Listing and bulk deletion page through the vector store with
``list_records`` rather than issuing a dummy similarity query, so every
stored record is seen regardless of how large the index grows.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING

import structlog

from src.models.rag import DeleteResult, DocumentSummary, IndexStats, UploadResult
from src.services.ingestion.document_extractor import ALLOWED_CONTENT_TYPES
from src.services.retrieval.filters import by_source
from src.utils.errors import (
    EmptyFileError,
    FileTooLargeError,
    InvalidRequestError,
    StoreError,
    UnsupportedFileTypeError,
)

if TYPE_CHECKING:
    from src.interfaces.vector_store_provider import IVectorStoreProvider
    from src.services.ingestion.document_extractor import DocumentExtractor
    from src.services.ingestion.ingestion_service import IngestionService

logger = structlog.get_logger(logger_name=__name__)

_BYTES_PER_MB = 1024 * 1024


def _to_mb(size: int) -> int:
    return round(size / _BYTES_PER_MB)


class DocumentService:
    """Upload and housekeeping operations over the document index.

    Parameters
    ----------
    extractor:
        Turns uploaded bytes into raw text.
    ingestion:
        Chunks, embeds and stores extracted text.
    vector_store:
        The index, used directly for listing, deletion and recreation.
    max_file_size:
        Upload size limit in bytes.
    embedding_dimension:
        Vector length the index is rebuilt for on recreation.
    delete_page_size:
        Records fetched per page while listing or deleting everything.
    """

    def __init__(
        self,
        extractor: DocumentExtractor,
        ingestion: IngestionService,
        vector_store: IVectorStoreProvider,
        max_file_size: int,
        embedding_dimension: int,
        delete_page_size: int = 1000,
    ) -> None:
        self._extractor = extractor
        self._ingestion = ingestion
        self._vector_store = vector_store
        self._max_file_size = max_file_size
        self._embedding_dimension = embedding_dimension
        self._page_size = delete_page_size

    @property
    def max_file_size(self) -> int:
        return self._max_file_size

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def validate_upload(
        self, file_name: str | None, content_type: str | None, size: int | None
    ) -> None:
        """Check name, type and size before the body is parsed.

        A *size* of ``None`` (not yet known) skips the size checks.

        Raises
        ------
        InvalidRequestError
            If no file name was supplied.
        UnsupportedFileTypeError
            If *content_type* is not plain text or PDF.
        FileTooLargeError
            If *size* exceeds ``max_file_size``.
        EmptyFileError
            If *size* is zero.
        """
        if not file_name:
            raise InvalidRequestError("No file provided")
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise UnsupportedFileTypeError()
        if size is None:
            return
        if size > self._max_file_size:
            raise FileTooLargeError(
                f"File size too large. File size: {_to_mb(size)}MB, "
                f"Maximum allowed: {_to_mb(self._max_file_size)}MB."
            )
        if size == 0:
            raise EmptyFileError()

    def size_limit_error(self, size: int) -> FileTooLargeError:
        """Error for a streamed upload that passed the limit after *size* bytes."""
        return FileTooLargeError(
            f"File size too large. File size: more than {_to_mb(size)}MB, "
            f"Maximum allowed: {_to_mb(self._max_file_size)}MB."
        )

    async def upload(self, file_name: str | None, content_type: str | None, data: bytes) -> UploadResult:
        """Validate, extract and ingest one uploaded file.

        A file whose text normalizes to nothing is not an error: the result
        has ``success=False`` and ``chunks=0`` and nothing is stored.
        """
        self.validate_upload(file_name, content_type, len(data))
        file_name = str(file_name)

        raw_text = await asyncio.to_thread(self._extractor.extract, data, str(content_type))
        result = await self._ingestion.ingest(raw_text, source=file_name)
        if result.chunk_count == 0:
            logger.info("upload_no_text_extracted", file_name=file_name, size=len(data))
            return UploadResult(
                success=False,
                message="No text content could be extracted from the file",
                file_id=str(uuid.uuid4()),
                file_name=file_name,
                chunks=0,
            )

        return UploadResult(
            success=True,
            message=f"File processed successfully. Created {result.chunk_count} chunks.",
            file_id=str(uuid.uuid4()),
            file_name=file_name,
            chunks=result.chunk_count,
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_documents(self) -> list[DocumentSummary]:
        """Group every stored record by ``source``, sorted by file name."""
        counts: dict[str, int] = {}
        latest: dict[str, str | None] = {}

        offset = 0
        while True:
            page = await self._vector_store.list_records(limit=self._page_size, offset=offset)
            for _record_id, metadata in page:
                source = metadata.get("source")
                if not source:
                    continue
                counts[source] = counts.get(source, 0) + 1
                timestamp = metadata.get("timestamp")
                current = latest.setdefault(source, None)
                if isinstance(timestamp, str) and (current is None or timestamp > current):
                    latest[source] = timestamp
            if len(page) < self._page_size:
                break
            offset += len(page)

        return [
            DocumentSummary(file_name=name, chunk_count=counts[name], last_updated=latest.get(name))
            for name in sorted(counts)
        ]

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete(self, file_name: str | None = None, delete_all: bool = False) -> DeleteResult:
        """Delete one document's chunks, or everything when *delete_all* is set."""
        if delete_all:
            return await self.delete_all()
        if not file_name:
            raise InvalidRequestError("Either file_name or delete_all flag is required")
        return await self.delete_by_source(file_name)

    async def delete_by_source(self, file_name: str) -> DeleteResult:
        deleted = await self._vector_store.delete_by_filter(by_source(file_name))
        logger.info("document_deleted", file_name=file_name, deleted=deleted)
        return DeleteResult(
            deleted_count=deleted,
            message=f"Deleted {deleted} chunks from {file_name}",
        )

    async def delete_all(self) -> DeleteResult:
        """Remove every record, one page at a time, until the store is empty."""
        total = 0
        while True:
            page = await self._vector_store.list_records(limit=self._page_size, offset=0)
            if not page:
                break
            deleted = await self._vector_store.delete_by_ids([record_id for record_id, _ in page])
            if deleted == 0:
                raise StoreError(
                    "Delete made no progress; records are still listed after deletion",
                    provider_name=self._vector_store.get_provider_name(),
                )
            total += deleted

        logger.info("all_documents_deleted", deleted=total)
        return DeleteResult(deleted_count=total, message="All documents deleted successfully")

    # ------------------------------------------------------------------
    # Index administration
    # ------------------------------------------------------------------

    async def recreate_index(self, confirm: bool) -> IndexStats:
        """Drop and rebuild the index.  Deletes every document.

        Raises
        ------
        InvalidRequestError
            Unless *confirm* is ``True``.
        """
        if not confirm:
            raise InvalidRequestError(
                "Recreating the index deletes every document; pass confirm=true to proceed"
            )
        logger.warning("index_recreation_requested", dimension=self._embedding_dimension)
        await self._vector_store.recreate_index(self._embedding_dimension)
        return await self._vector_store.get_stats()

    async def stats(self) -> IndexStats:
        return await self._vector_store.get_stats()
