"""Document ingestion pipeline for the docchat knowledge base.

Orchestrates the pipeline: **extract -> normalize -> chunk -> dedupe -> embed -> store**.

1. **Extract** (document_extractor.py / DocumentExtractor) -- decodes plain
   text and reads PDFs with PyMuPDF.
2. **Normalize** (src/utils/text_normalizer.py) -- strips layout debris.
3. **Chunk** (chunker.py / TextChunker) -- fixed-size overlapping windows.
4. **Dedupe** (deduplicator.py / NearDuplicateFilter) -- drops chunks that
   repeat an earlier chunk's vocabulary.
5. **Embed + Store** (ingestion_service.py / IngestionService) -- one
   embedding per chunk, batched upserts into the vector store.
"""

from src.services.ingestion.chunker import TextChunker, validate_chunking_config
from src.services.ingestion.deduplicator import NearDuplicateFilter
from src.services.ingestion.document_extractor import DocumentExtractor
from src.services.ingestion.ingestion_service import IngestionService, validate_embedding

__all__ = [
    "DocumentExtractor",
    "IngestionService",
    "NearDuplicateFilter",
    "TextChunker",
    "validate_chunking_config",
    "validate_embedding",
]
