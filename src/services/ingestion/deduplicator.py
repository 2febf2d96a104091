"""Greedy near-duplicate chunk filtering.

Repeated boilerplate (legal footers, repeated slides, copy-pasted sections)
produces chunks that are almost word-for-word identical.  Embedding all of
them wastes tokens and crowds retrieval results, so the ingestion pipeline
drops any chunk whose vocabulary overlaps too much with a chunk it already
kept.

The comparison is a word-set overlap, not a semantic one, and the filter is
greedy and order-dependent: a chunk is compared only against chunks kept
before it.  Two kept chunks can therefore each be close to a dropped third.
"""

from __future__ import annotations

import structlog

from src.models.rag import Chunk

logger = structlog.get_logger(logger_name=__name__)


def _word_set(text: str) -> frozenset[str]:
    return frozenset(text.lower().split())


def word_overlap(candidate: frozenset[str], kept: frozenset[str]) -> float:
    """Share of words in common, relative to the larger of the two sets.

    Two empty sets count as identical.
    """
    largest = max(len(candidate), len(kept))
    if largest == 0:
        return 1.0
    return len(candidate & kept) / largest


class NearDuplicateFilter:
    """Drops chunks whose word overlap with a kept chunk exceeds *threshold*.

    Parameters
    ----------
    threshold:
        Overlap above which a chunk counts as a duplicate.  The comparison is
        strict, so a chunk at exactly the threshold is kept.  Default 0.8.
    """

    def __init__(self, threshold: float = 0.8) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {threshold}")
        self._threshold = threshold

    def dedupe(self, chunks: list[Chunk]) -> list[Chunk]:
        """Return the order-preserving subset of *chunks* with near-duplicates removed.

        Chunk indexes are left as they were, so the output may have gaps.
        """
        kept: list[Chunk] = []
        kept_words: list[frozenset[str]] = []

        for chunk in chunks:
            words = _word_set(chunk.text)
            if any(word_overlap(words, other) > self._threshold for other in kept_words):
                continue
            kept.append(chunk)
            kept_words.append(words)

        if len(kept) != len(chunks):
            logger.debug(
                "near_duplicates_removed",
                original=len(chunks),
                kept=len(kept),
                threshold=self._threshold,
            )
        return kept
