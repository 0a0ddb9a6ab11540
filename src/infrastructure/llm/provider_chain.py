"""
infrastructure.llm.provider_chain - Ordered provider fallback.

ProviderChain is itself a ChatProviderPort: it asks each adapter in turn
and returns the first non-empty reply, tagged with the provider that
produced it. Failures are recorded, logged and never retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from domain.exceptions import FailureReason, ProviderError
from domain.ports import ChatMessage, ChatProviderPort, ProviderReply
from infrastructure.llm.chat_provider import UnconfiguredProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderFailure:
    provider: str
    reason: FailureReason
    message: str = ""


class ProviderChain:
    """Try providers in order; raise ProviderError if all of them fail."""

    name = "chain"

    def __init__(self, providers: Sequence[ChatProviderPort]):
        self._providers = list(providers)

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    @property
    def configured(self) -> bool:
        """True when at least one provider could actually be called."""
        return any(not isinstance(p, UnconfiguredProvider) for p in self._providers)

    async def complete(self, messages: Sequence[ChatMessage]) -> ProviderReply:
        failures: list[ProviderFailure] = []
        for provider in self._providers:
            try:
                reply = await provider.complete(messages)
            except ProviderError as exc:
                failures.append(ProviderFailure(provider.name, exc.reason, str(exc)))
                logger.warning("Provider %s failed (%s): %s", provider.name, exc.reason.value, exc)
                continue
            if not reply.text.strip():
                failures.append(ProviderFailure(provider.name, FailureReason.EMPTY))
                logger.warning("Provider %s returned empty text", provider.name)
                continue
            return reply

        if failures and all(f.reason is FailureReason.UNCONFIGURED for f in failures):
            reason = FailureReason.UNCONFIGURED
        else:
            reason = failures[-1].reason if failures else FailureReason.UNCONFIGURED
        summary = ", ".join(f"{f.provider}={f.reason.value}" for f in failures) or "no providers"
        raise ProviderError(f"All providers failed ({summary})", reason, failures)
