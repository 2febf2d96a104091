"""Chat conversation models.

A chat request is an ordered list of :class:`ChatTurn` objects.  The chat
service answers with a :class:`ChatResult` carrying the generated text,
citations, a short preview of the retrieved context and evaluation metrics.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.models.rag import Citation


class PromptMode(str, Enum):
    """Which prompt template the generator was given."""

    DEFAULT = "default"
    AD_SAMPLES = "ad_samples"


class ChatTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class ChatMetrics(BaseModel):
    """Per-answer evaluation metrics, logged and returned to the caller."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(description="Latest user message.")
    history: str = Field(description="Full formatted conversation used for retrieval.")
    timestamp: str
    matches_count: int = Field(default=0, ge=0)
    top_score: float = 0.0
    average_score: float = 0.0
    has_citations: bool = False
    response_length: int = Field(default=0, ge=0)
    mode: PromptMode = PromptMode.DEFAULT


class ChatResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    response: str
    citations: list[Citation] = Field(default_factory=list)
    context_preview: str = ""
    metrics: ChatMetrics
