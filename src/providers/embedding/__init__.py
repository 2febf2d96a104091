"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic meaning.
These vectors are stored in the vector index and used for similarity search.

OpenAIEmbeddingProvider calls the embeddings endpoint (text-embedding-3-large
by default, 3072 dims).  The model and dimension must match whatever the
index was built with; see ``EMBEDDING_DIMENSION``.
"""

from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
