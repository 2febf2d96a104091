"""Utility modules for docchat.

- **errors** -- Domain exception hierarchy rooted at DocChatError; each
  subclass carries the HTTP status the API middleware answers with.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **text_normalizer** -- Cleanup of extracted document text (page counters
  and separator rules) ahead of chunking.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    ConfigurationError,
    DimensionMismatchError,
    DocChatError,
    DocumentExtractionError,
    EmbeddingError,
    InvalidRequestError,
    LLMError,
    RateLimitError,
    StoreError,
)

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Document text cleanup --------------------------------------------------
from src.utils.text_normalizer import normalize_document_text

__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "DocChatError",
    "DocumentExtractionError",
    "EmbeddingError",
    "InvalidRequestError",
    "LLMError",
    "RateLimitError",
    "StoreError",
    "configure_logging",
    "get_logger",
    "normalize_document_text",
]
