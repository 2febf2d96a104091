"""Vector store provider implementations.

ChromaDB is the persistent store: records live on disk at
CHROMADB_PERSIST_DIR and are searched by cosine similarity with metadata
filtering.  The in-memory store keeps everything in process and backs local
development and the test suite.

Select one with the ``VECTOR_STORE`` setting; wiring happens in main.py.
"""

from src.providers.vector_store.chromadb_provider import ChromaDBProvider
from src.providers.vector_store.memory_provider import InMemoryVectorStore

__all__ = ["ChromaDBProvider", "InMemoryVectorStore"]
