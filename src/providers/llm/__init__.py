"""LLM provider adapters.

OpenAILLMProvider implements ILLMProvider (src/interfaces/llm_provider.py)
on top of the chat completions API, and also works with OpenAI-compatible
gateways through ``OPENAI_BASE_URL``.  main.py injects it into the chat
service at startup.
"""

from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
