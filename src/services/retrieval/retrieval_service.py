"""Query-time retrieval: embed the query, search the index, build context.

:class:`RetrievalService` is the read side of the RAG pipeline.  It owns no
state beyond its injected collaborators; every call embeds the query text
fresh and returns the matches exactly in the order the store ranked them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from src.models.rag import RetrievalResult
from src.services.retrieval.context_builder import build_citations, build_context
from src.services.retrieval.filters import normalize_filters

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)


class RetrievalService:
    """Semantic search over the vector store.

    Parameters
    ----------
    embedding_provider:
        Embeds the query with the same model used at ingestion.
    vector_store:
        The index to search.
    default_top_k:
        Number of matches when the caller does not pass ``top_k`` (default 5).
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        default_top_k: int = 5,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._default_top_k = default_top_k

    async def retrieve(
        self,
        query: str,
        top_k: int | None = None,
        filters: dict[str, Any] | None = None,
    ) -> RetrievalResult:
        """Embed *query*, search the index and assemble context and citations.

        Parameters
        ----------
        query:
            Free text; for chat this is the whole formatted conversation.
        top_k:
            Maximum number of matches; defaults to ``default_top_k``.
        filters:
            Optional metadata filter.  Empty or malformed filters are
            dropped so they never turn into "match nothing".

        Raises
        ------
        EmbeddingError, StoreError
            Propagated unchanged; retrieval is not retried.
        """
        k = top_k if top_k is not None else self._default_top_k
        vector = await self._embedding_provider.embed_single(query)
        matches = await self._vector_store.search(
            vector,
            top_k=k,
            filters=normalize_filters(filters),
            include_metadata=True,
        )

        logger.info(
            "retrieval_complete",
            top_k=k,
            matches=len(matches),
            top_score=matches[0].score if matches else None,
            filtered=filters is not None,
        )
        return RetrievalResult(
            matches=matches,
            context=build_context(matches),
            citations=build_citations(matches),
        )
