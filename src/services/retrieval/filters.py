"""Metadata filter builders for vector search.

Filters are plain dicts mapping a metadata key to an operator clause, e.g.
``{"source": {"$eq": "report.pdf"}}``.  Only ``$eq``, ``$gte`` and ``$lte``
are produced here and understood by the vector store providers.

An empty or malformed filter always collapses to ``None``, which the store
treats as "no filter".
"""

from __future__ import annotations

from typing import Any

SUPPORTED_OPERATORS = frozenset({"$eq", "$gte", "$lte"})

Filter = dict[str, dict[str, Any]]


def by_source(source: str) -> Filter:
    return {"source": {"$eq": source}}


def by_date_range(start: str, end: str) -> Filter:
    """Records whose ISO-8601 ``timestamp`` lies within ``[start, end]``."""
    return {"timestamp": {"$gte": start, "$lte": end}}


def by_chunk_index(min_index: int, max_index: int) -> Filter:
    return {"chunkIndex": {"$gte": min_index, "$lte": max_index}}


def by_file_type(file_type: str) -> Filter:
    return {"fileType": {"$eq": file_type}}


def _is_valid(candidate: object) -> bool:
    if not isinstance(candidate, dict) or not candidate:
        return False
    return all(
        isinstance(key, str) and isinstance(clause, dict) and clause
        for key, clause in candidate.items()
    )


def combine(*filters: object) -> Filter | None:
    """Merge several filters with AND semantics.

    Entries that are not well-formed filter dicts are skipped.  A later
    filter on the same key replaces the earlier one.  Returns ``None`` when
    nothing valid remains.
    """
    combined: Filter = {}
    for candidate in filters:
        if _is_valid(candidate):
            combined.update(candidate)  # type: ignore[arg-type]
    return combined or None


def normalize_filters(filters: object) -> Filter | None:
    """Return *filters* if it is a usable filter, else ``None``."""
    return combine(filters)
