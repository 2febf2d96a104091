"""Context window and citation assembly from vector search matches.

The context string is what the generator sees; citations are what the user
sees.  Both are built from the same match list, in the store's order, and
neither step may fail on a match with missing metadata.
"""

from __future__ import annotations

from src.models.rag import Citation, SearchMatch

NO_CONTEXT_MESSAGE = "No relevant documents found in the knowledge base."
CONTEXT_HEADER = "Retrieved Context:\n\n"
UNKNOWN_SOURCE = "Unknown source"


def build_context(matches: list[SearchMatch]) -> str:
    """Format *matches* as a numbered, human-readable context block.

    Returns :data:`NO_CONTEXT_MESSAGE` when there are no matches.
    """
    if not matches:
        return NO_CONTEXT_MESSAGE

    parts = [CONTEXT_HEADER]
    for position, match in enumerate(matches, start=1):
        metadata = match.metadata or {}
        source = metadata.get("source") or UNKNOWN_SOURCE
        parts.append(f"[{position}] Source: {source} (Score: {match.score:.3f})\n")
        if metadata.get("title"):
            parts.append(f"Title: {metadata['title']}\n")
        if metadata.get("summary"):
            parts.append(f"Summary: {metadata['summary']}\n")
        parts.append(f"Content: {metadata.get('text') or ''}\n\n")
    return "".join(parts)


def _page_number(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def build_citations(matches: list[SearchMatch]) -> list[Citation]:
    """One :class:`Citation` per match, preserving retrieval rank."""
    citations: list[Citation] = []
    for position, match in enumerate(matches):
        metadata = dict(match.metadata or {})
        citations.append(
            Citation(
                id=match.id or f"citation-{position}",
                content=str(metadata.get("text") or ""),
                source=str(metadata.get("source") or UNKNOWN_SOURCE),
                page=_page_number(metadata.get("page")),
                metadata=metadata,
            )
        )
    return citations


def preview(context: str, length: int = 200) -> str:
    """Leading slice of *context* followed by ``...`` for debug display."""
    return context[:length] + "..."
