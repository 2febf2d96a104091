"""Custom exception hierarchy for docchat.

All application exceptions inherit from :class:`DocChatError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "chromadb") caused the failure, and a
``status_code`` used by the API layer when translating errors to HTTP.

The hierarchy is organized by pipeline stage:

    DocChatError  (base -- catch-all for any docchat error)
    +-- ConfigurationError          (startup / invalid settings)
    +-- InvalidConfigurationError   (bad chunk size / overlap)
    +-- InvalidRequestError         (malformed boundary request)
    +-- UnsupportedFileTypeError    (upload content type not allowed)
    +-- FileTooLargeError           (upload exceeds size limit)
    +-- EmptyFileError              (zero-byte upload)
    +-- DocumentExtractionError     (text could not be parsed from a file)
    +-- EmbeddingError              (embedding API failure)
    |   +-- EmbeddingValidationError  (wrong dimension / non-finite values)
    +-- StoreError                  (vector store failure)
    |   +-- DimensionMismatchError    (index dimension != vector dimension)
    +-- LLMError                    (generation failure)
    +-- RateLimitError              (client exceeded its request window)

Subclasses only declare ``status_code`` and ``default_message``; raising one
without a message uses the default.
"""


class DocChatError(Exception):
    """Base exception for all docchat errors.

    Parameters
    ----------
    message:
        Human-readable description; ``default_message`` when omitted.  This
        is what the API returns as ``detail``, so it must not leak internals.
    provider_name:
        The external service that failed, if any.  ``str()`` prefixes it in
        brackets for log output, e.g. ``[chromadb] upsert failed``.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, provider_name: str | None = None) -> None:
        self._message = message or self.default_message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if not self._provider_name:
            return self._message
        return f"[{self._provider_name}] {self._message}"


# ---------------------------------------------------------------------------
# Configuration and request errors (caller mistakes, never retried)
# ---------------------------------------------------------------------------

class ConfigurationError(DocChatError):
    """Required settings are missing or invalid at startup."""

    default_message = "Invalid or missing configuration"


class InvalidConfigurationError(DocChatError):
    """Chunking parameters are unusable (size <= 0, overlap >= size)."""

    status_code = 400
    default_message = "Invalid chunking configuration"


class InvalidRequestError(DocChatError):
    status_code = 400
    default_message = "Invalid request"


# ---------------------------------------------------------------------------
# Upload errors
# ---------------------------------------------------------------------------

class UnsupportedFileTypeError(DocChatError):
    status_code = 415
    default_message = "Invalid file type. Only .txt and .pdf files are allowed."


class FileTooLargeError(DocChatError):
    status_code = 413
    default_message = "File too large"


class EmptyFileError(DocChatError):
    status_code = 400
    default_message = "File is empty."


class DocumentExtractionError(DocChatError):
    """No text could be parsed out of an uploaded file."""

    status_code = 422
    default_message = "Failed to extract text from the document"


# ---------------------------------------------------------------------------
# Provider errors (embedding, vector store, LLM)
# ---------------------------------------------------------------------------

class EmbeddingError(DocChatError):
    status_code = 502
    default_message = "Embedding request failed"


class EmbeddingValidationError(EmbeddingError):
    """An embedding has the wrong length or non-finite components."""

    default_message = "Embedding failed validation"


class StoreError(DocChatError):
    status_code = 502
    default_message = "Vector store operation failed"


class DimensionMismatchError(StoreError):
    """The backend rejected vectors whose length differs from the index."""

    default_message = "Vector dimension does not match the index"


class LLMError(DocChatError):
    status_code = 502
    default_message = "LLM API call failed"


class RateLimitError(DocChatError):
    status_code = 429
    default_message = "Too many requests. Please try again later."
