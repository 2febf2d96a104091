"""Fixed-size character chunking with overlapping windows.

Splits normalized document text into :class:`~src.models.rag.Chunk`
objects.  Each window is ``chunk_size`` characters long (the last one may be
shorter) and consecutive windows share ``overlap`` characters, so a phrase
that straddles a boundary is still whole in at least one chunk.

Every chunk also gets a cheap display title (its first three words) and a
summary (its first sentence, or a leading excerpt) that are stored as vector
metadata and shown in the retrieved context.
"""

from __future__ import annotations

import re

import structlog

from src.models.rag import Chunk
from src.utils.errors import InvalidConfigurationError

logger = structlog.get_logger(logger_name=__name__)

_SENTENCE_END = re.compile(r"[.!?]")
_TITLE_WORDS = 3
_SUMMARY_CHARS = 100
_MIN_SENTENCE_CHARS = 10


def validate_chunking_config(chunk_size: int, overlap: int) -> None:
    """Raise :class:`InvalidConfigurationError` unless ``0 <= overlap < chunk_size``."""
    if chunk_size <= 0:
        raise InvalidConfigurationError(f"Chunk size must be positive, got {chunk_size}")
    if overlap < 0:
        raise InvalidConfigurationError(f"Chunk overlap cannot be negative, got {overlap}")
    if overlap >= chunk_size:
        raise InvalidConfigurationError(
            f"Chunk overlap ({overlap}) must be less than chunk size ({chunk_size})"
        )


class TextChunker:
    """Splits text into overlapping fixed-size character windows.

    Parameters
    ----------
    chunk_size:
        Maximum number of characters per chunk (default 1000).
    overlap:
        Number of characters shared by consecutive chunks (default 200).

    Raises
    ------
    InvalidConfigurationError
        If ``chunk_size <= 0``, ``overlap < 0`` or ``overlap >= chunk_size``.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        validate_chunking_config(chunk_size, overlap)
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[Chunk]:
        """Split *text* into overlapping :class:`Chunk` objects.

        Empty or whitespace-only input returns an empty list.  Indexes are
        dense and zero-based in emission order.
        """
        if not text or not text.strip():
            return []

        chunks: list[Chunk] = []
        start = 0
        while start < len(text):
            end = start + self._chunk_size
            window = text[start:end]
            chunks.append(
                Chunk(
                    text=window,
                    title=self._make_title(window),
                    summary=self._make_summary(window),
                    index=len(chunks),
                )
            )
            next_start = end - self._overlap
            # The window must always move forward.
            start = end if next_start <= start else next_start

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            text_length=len(text),
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return chunks

    # ------------------------------------------------------------------
    # Title / summary helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _make_title(window: str) -> str:
        first_words = " ".join(window.split(" ")[:_TITLE_WORDS])
        return first_words if first_words else "Chunk"

    @staticmethod
    def _make_summary(window: str) -> str:
        """First sentence when it is long enough, otherwise a leading excerpt."""
        first_sentence = _SENTENCE_END.split(window, maxsplit=1)[0]
        if len(first_sentence) > _MIN_SENTENCE_CHARS:
            suffix = "..." if len(first_sentence) > _SUMMARY_CHARS else ""
            return first_sentence[:_SUMMARY_CHARS] + suffix
        suffix = "..." if len(window) > _SUMMARY_CHARS else ""
        return window[:_SUMMARY_CHARS] + suffix
