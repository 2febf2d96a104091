"""Public interface definitions for all external service providers.

Every external service docchat talks to is accessed through the abstract
base classes in this package.  Concrete adapters live in ``src/providers/``
and are wired together in ``src/main.py``; tests inject fakes.

    Interface              ->  Concrete implementations (in src/providers/)
    IEmbeddingProvider     ->  OpenAIEmbeddingProvider
    IVectorStoreProvider   ->  ChromaDBProvider, InMemoryVectorStore
    ILLMProvider           ->  OpenAILLMProvider
    IRateLimiter           ->  MemoryRateLimiter
"""

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.rate_limiter import IRateLimiter
from src.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IEmbeddingProvider",
    "ILLMProvider",
    "IRateLimiter",
    "IVectorStoreProvider",
]
