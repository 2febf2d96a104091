"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into fixed-length vectors.  The
ingestion pipeline embeds each chunk with :meth:`IEmbeddingProvider.embed_single`
and the retrieval pipeline embeds the conversation the same way, so both
sides of a similarity search come from the same model.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAIEmbeddingProvider (src/providers/embedding/)
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the RAG pipeline."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        src.utils.errors.EmbeddingError
            If the embedding API call fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Implementations return the vector exactly as the backend produced it;
        they never pad or truncate to :meth:`get_dimension`.  Callers validate.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the configured dimensionality of the embedding vectors."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai-text-embedding-3-large"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are present and the model is usable."""
