"""Application settings loaded from environment variables via pydantic-settings.

Values are read from (highest priority first):

  1. Environment variables, e.g. ``OPENAI_API_KEY=sk-...``
  2. The ``.env`` file in the working directory
  3. The defaults below

Field ``chunk_size`` maps to env var ``CHUNK_SIZE`` and so on; matching is
case-insensitive.  Call :func:`validate_settings` at startup to fail fast on
a bad deployment instead of on the first upload.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.utils.errors import ConfigurationError


class Settings(BaseSettings):
    """docchat application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === OpenAI ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible gateway; empty = api.openai.com
    openai_chat_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.7
    openai_max_tokens: int = 2000
    openai_embedding_model: str = "text-embedding-3-large"
    embedding_dimension: int = 3072

    # === Vector store ===
    vector_store: str = "chromadb"  # "chromadb" or "memory"
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "docchat_documents"
    allow_index_recreation: bool = False  # ingestion may drop the index on dimension mismatch

    # === Ingestion ===
    max_file_size: int = 52_428_800  # 50 MiB
    chunk_size: int = 1000
    chunk_overlap: int = 200
    dedup_threshold: float = 0.8
    upsert_batch_size: int = 100
    delete_page_size: int = 1000

    # === Retrieval ===
    max_search_results: int = 5

    # === Rate limiting ===
    rate_limit_max_requests: int = 10
    rate_limit_window_seconds: float = 60.0

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def validation_errors(self) -> list[str]:
        """Return every configuration problem; empty when the settings are usable."""
        errors: list[str] = []
        if not self.openai_api_key:
            errors.append("OPENAI_API_KEY is required")
        if not 0 <= self.openai_temperature <= 2:
            errors.append("OPENAI_TEMPERATURE must be between 0 and 2")
        if self.embedding_dimension <= 0:
            errors.append("EMBEDDING_DIMENSION must be greater than 0")
        if self.vector_store not in ("chromadb", "memory"):
            errors.append("VECTOR_STORE must be 'chromadb' or 'memory'")
        if self.vector_store == "chromadb" and not self.chromadb_collection:
            errors.append("CHROMADB_COLLECTION is required")
        if self.max_file_size <= 0:
            errors.append("MAX_FILE_SIZE must be greater than 0")
        if self.chunk_size <= 0:
            errors.append("CHUNK_SIZE must be greater than 0")
        if self.chunk_overlap < 0 or self.chunk_overlap >= self.chunk_size:
            errors.append("CHUNK_OVERLAP must be between 0 and CHUNK_SIZE")
        if not 0 <= self.dedup_threshold <= 1:
            errors.append("DEDUP_THRESHOLD must be between 0 and 1")
        if self.upsert_batch_size <= 0:
            errors.append("UPSERT_BATCH_SIZE must be greater than 0")
        if self.delete_page_size <= 0:
            errors.append("DELETE_PAGE_SIZE must be greater than 0")
        if self.max_search_results <= 0:
            errors.append("MAX_SEARCH_RESULTS must be greater than 0")
        if self.rate_limit_max_requests <= 0:
            errors.append("RATE_LIMIT_MAX_REQUESTS must be greater than 0")
        if self.rate_limit_window_seconds <= 0:
            errors.append("RATE_LIMIT_WINDOW_SECONDS must be greater than 0")
        return errors


def validate_settings(settings: Settings) -> None:
    """Raise :class:`ConfigurationError` listing every problem in *settings*."""
    errors = settings.validation_errors()
    if errors:
        raise ConfigurationError(
            "Configuration validation failed:\n" + "\n".join(errors)
        )
