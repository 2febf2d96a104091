"""Retrieval-augmented chat over the uploaded document corpus.

Each call answers one conversation:

  1. HISTORY   -- format every turn as ``User: ...`` / ``Assistant: ...``
                  lines.  The whole history is the retrieval query and the
                  question handed to the model, so follow-ups like "and the
                  second one?" still retrieve the right passages.
  2. RETRIEVE  -- embed the history and pull the top matches from the index.
  3. ROUTE     -- look at the latest user turn only and pick a prompt
                  template: requests for ad samples / marketing copy get a
                  copywriting template, everything else the general one.
                  Routing never changes what is retrieved.
  4. GENERATE  -- one LLM call, no retries.
  5. METRICS   -- score statistics and the chosen mode are logged as
                  ``chat_evaluation_metrics`` and returned with the answer.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from src.models.chat import ChatMetrics, ChatResult, ChatTurn, PromptMode
from src.services.retrieval.context_builder import preview
from src.utils.errors import InvalidRequestError

if TYPE_CHECKING:
    from src.interfaces.llm_provider import ILLMProvider
    from src.models.rag import RetrievalResult
    from src.services.retrieval.retrieval_service import RetrievalService

logger = structlog.get_logger(logger_name=__name__)

AD_SAMPLE_KEYWORDS: tuple[str, ...] = (
    "ad sample",
    "ad samples",
    "ad example",
    "ad examples",
    "ad copy",
    "ad copies",
    "facebook ad",
    "google ads",
    "linkedin ad",
    "instagram ad",
    "tiktok ad",
    "twitter ad",
    "x ad",
    "youtube ad",
    "display ad",
    "banner ad",
    "ad creative",
    "marketing copy",
    "promo copy",
)

_ROLE_LABELS = {"user": "User", "assistant": "Assistant"}


def is_ad_sample_request(message: str) -> bool:
    """True when *message* asks for advertising samples (case-insensitive substring match)."""
    lowered = message.lower()
    return any(keyword in lowered for keyword in AD_SAMPLE_KEYWORDS)


def select_prompt_mode(message: str) -> PromptMode:
    return PromptMode.AD_SAMPLES if is_ad_sample_request(message) else PromptMode.DEFAULT


def format_history(turns: Sequence[ChatTurn]) -> str:
    return "\n".join(f"{_ROLE_LABELS[turn.role]}: {turn.content}" for turn in turns)


def last_user_message(turns: Sequence[ChatTurn]) -> str:
    for turn in reversed(turns):
        if turn.role == "user":
            return turn.content
    return ""


class ChatService:
    """Answers a conversation from retrieved document context.

    Parameters
    ----------
    retrieval:
        Embeds the conversation and searches the index.
    llm:
        Writes the answer.
    top_k:
        Matches to retrieve per question; ``None`` uses the retrieval default.
    temperature:
        Sampling temperature passed to the LLM.
    max_tokens:
        Completion length limit passed to the LLM.
    mode_selector:
        Maps the latest user message to a :class:`PromptMode`.  Defaults to
        :func:`select_prompt_mode`.
    """

    _DEFAULT_TEMPLATE = (
        "You are a helpful assistant.\n"
        "You can refer to the following context to answer the user's question:\n"
        "{context}\n\n"
        "Don't rely too heavily on the given context. Use your existing knowledge "
        "and use the context as a reference. When you use a passage, cite it "
        "inline with its number, e.g. [1]."
    )

    _AD_SAMPLES_TEMPLATE = (
        "You are an experienced advertising copywriter.\n"
        "The following context comes from the user's own documents (brand notes, "
        "product facts, past campaigns):\n"
        "{context}\n\n"
        "Write the ad samples the user asks for. Keep product claims consistent "
        "with the context, match the conventions of the platform that was "
        "requested (length, tone, call to action) and label each variant. "
        "Use your own knowledge of effective advertising where the context is silent."
    )

    _QUESTION_TEMPLATE = "{history}\nYour Answer:"

    def __init__(
        self,
        retrieval: RetrievalService,
        llm: ILLMProvider,
        top_k: int | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        mode_selector: Callable[[str], PromptMode] | None = None,
    ) -> None:
        self._retrieval = retrieval
        self._llm = llm
        self._top_k = top_k
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._mode_selector = mode_selector or select_prompt_mode

    async def answer(self, turns: Sequence[ChatTurn]) -> ChatResult:
        """Answer the conversation in *turns*.

        Raises
        ------
        InvalidRequestError
            If *turns* is empty.
        EmbeddingError, StoreError, LLMError
            Propagated from the collaborators.
        """
        if not turns:
            raise InvalidRequestError("Messages array is required and must not be empty")

        history = format_history(turns)
        query = last_user_message(turns)

        retrieved = await self._retrieval.retrieve(history, top_k=self._top_k)
        mode = self._mode_selector(query)

        response = await self._llm.complete(
            system_prompt=self.build_system_prompt(mode, retrieved.context),
            user_prompt=self._QUESTION_TEMPLATE.format(history=history),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        metrics = self._build_metrics(query, history, retrieved, response, mode)
        logger.info(
            "chat_evaluation_metrics",
            **metrics.model_dump(mode="json", exclude={"history", "timestamp"}),
        )

        return ChatResult(
            response=response,
            citations=retrieved.citations,
            context_preview=preview(retrieved.context),
            metrics=metrics,
        )

    def build_system_prompt(self, mode: PromptMode, context: str) -> str:
        template = (
            self._AD_SAMPLES_TEMPLATE if mode is PromptMode.AD_SAMPLES else self._DEFAULT_TEMPLATE
        )
        return template.format(context=context)

    @staticmethod
    def _build_metrics(
        query: str,
        history: str,
        retrieved: RetrievalResult,
        response: str,
        mode: PromptMode,
    ) -> ChatMetrics:
        scores = [m.score for m in retrieved.matches]
        return ChatMetrics(
            query=query,
            history=history,
            timestamp=datetime.now(timezone.utc).isoformat(),
            matches_count=len(scores),
            top_score=scores[0] if scores else 0.0,
            average_score=sum(scores) / len(scores) if scores else 0.0,
            has_citations=bool(retrieved.citations),
            response_length=len(response),
            mode=mode,
        )
