"""
infrastructure.llm.chat_provider - ChatProviderPort over LangChain chat models.

The blocking model.invoke() runs in the default thread pool so the event
loop keeps serving other requests; asyncio.wait_for bounds the call.
Every failure surfaces as ProviderError carrying a typed FailureReason.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from domain.exceptions import ConfigurationError, FailureReason, ProviderError
from domain.ports import ChatMessage, ProviderReply
from infrastructure.config import Settings
from infrastructure.llm.llm_builder import build_llm

logger = logging.getLogger(__name__)


def to_langchain(messages: Sequence[ChatMessage]) -> list[BaseMessage]:
    """Map provider-neutral messages onto LangChain message types."""
    converted: list[BaseMessage] = []
    for m in messages:
        if m.role == "system":
            converted.append(SystemMessage(content=m.content))
        elif m.role == "assistant":
            converted.append(AIMessage(content=m.content))
        else:
            converted.append(HumanMessage(content=m.content))
    return converted


def _content_text(content: object) -> str:
    """AIMessage.content may be a string or a list of content blocks."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return str(content or "")


class LangChainChatProvider:
    """One named provider backed by a LangChain chat model."""

    def __init__(self, name: str, llm: BaseChatModel, timeout_seconds: float = 15.0):
        self.name = name
        self._llm = llm
        self._timeout = timeout_seconds

    @classmethod
    def from_settings(cls, name: str, config: Settings) -> LangChainChatProvider:
        """Build the provider called name. Raises ConfigurationError."""
        llm = build_llm(
            provider=name,
            model=config.model_for(name),
            ollama_base_url=config.ollama_base_url,
            openai_api_key=config.openai_api_key,
            groq_api_key=config.groq_api_key,
            timeout=config.llm_timeout_seconds,
        )
        return cls(name, llm, timeout_seconds=config.llm_timeout_seconds)

    async def complete(self, messages: Sequence[ChatMessage]) -> ProviderReply:
        loop = asyncio.get_running_loop()
        try:
            result = await asyncio.wait_for(
                loop.run_in_executor(None, self._llm.invoke, to_langchain(messages)),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderError(
                f"{self.name} timed out after {self._timeout:g}s", FailureReason.TIMEOUT,
            ) from exc
        except Exception as exc:
            raise ProviderError(f"{self.name} failed: {exc}", FailureReason.ERROR) from exc

        text = _content_text(getattr(result, "content", result)).strip()
        if not text:
            raise ProviderError(f"{self.name} returned an empty reply", FailureReason.EMPTY)
        return ProviderReply(text=text, provider=self.name)


class UnconfiguredProvider:
    """Placeholder for a provider whose credentials are missing.

    Keeps the chain's failure report complete without ever touching
    the network.
    """

    def __init__(self, name: str, error: ConfigurationError):
        self.name = name
        self._message = str(error)

    async def complete(self, messages: Sequence[ChatMessage]) -> ProviderReply:
        raise ProviderError(self._message, FailureReason.UNCONFIGURED)
