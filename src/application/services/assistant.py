"""
application.services.assistant - Per-request orchestration.

Routes one admin message through the pipeline:

    scope filter
      -> pending disambiguation? -> DisambiguationResolver
      -> IntentMatcher (skipped for creative requests)
      -> AgentExecutor (model + tools)
      -> local rules for creative text the model could not serve
      -> offline notice

Every path produces an AssistantReply whose `source` names the path.
Only truly unexpected faults escape this service.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Optional

from agent.executor import AgentExecutor
from application.context import SessionContext
from application.intents.matcher import IntentMatcher, Turn
from application.intents.resolver import DisambiguationResolver
from application.services.scope_filter import OUT_OF_SCOPE_REPLY, ScopeFilter
from application.services.session_store import SessionStore
from domain.exceptions import ProviderError
from domain.models import AssistantReply, ReplySource, ScopeVerdict

logger = logging.getLogger(__name__)

OFFLINE_REPLY = (
    "🤖 AI is offline. Configure OPENAI_API_KEY or GROQ_API_KEY (or start Ollama) "
    "and restart the server for enhanced capabilities. Local commands such as "
    '"inventory summary", "add 10 to SKU-X" or "mark order ORD-1 as shipped" still work.'
)

_CREATIVE = re.compile(
    r"\b(?:brainstorm\w*|ideas?|ideation|campaigns?|copywriting|marketing|slogans?"
    r"|product\s+descriptions?|logos?|mockups?)\b",
    re.IGNORECASE,
)


def is_creative(text: str) -> bool:
    """Creative requests go straight to the model."""
    return bool(_CREATIVE.search(text))


class AssistantService:
    """Entry point shared by the REST and CLI adapters.

    agent is None when no model provider is configured; the service then
    runs in local-rules-only mode.
    """

    def __init__(
        self,
        sessions: SessionStore,
        scope_filter: ScopeFilter,
        matcher: IntentMatcher,
        resolver: DisambiguationResolver,
        agent: Optional[AgentExecutor] = None,
    ):
        self._sessions = sessions
        self._scope = scope_filter
        self._matcher = matcher
        self._resolver = resolver
        self._agent = agent

    @property
    def ai_enabled(self) -> bool:
        return self._agent is not None

    async def handle(self, ctx: SessionContext, text: str) -> AssistantReply:
        text = (text or "").strip()
        reply = await self._route(ctx, text)
        logger.info("client=%s source=%s text=%r", ctx.client_id, reply.source, text[:80])
        return reply

    async def reset(self, client_id: str) -> None:
        """Drop every piece of conversational state for client_id."""
        await self._sessions.clear(client_id)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def _route(self, ctx: SessionContext, text: str) -> AssistantReply:
        if not text:
            return AssistantReply(text="Please type a command, for example \"inventory summary\".")

        if self._scope.classify(text) is ScopeVerdict.OUT_OF_SCOPE:
            return AssistantReply(text=OUT_OF_SCOPE_REPLY, source=ReplySource.GUARDRAIL.value)

        session = await self._sessions.get(ctx.client_id)
        if session is not None and session.pending_choice is not None:
            return await self._resolver.resolve(ctx.client_id, text, session)

        turn = Turn(text=text, ctx=ctx, session=session)
        creative = is_creative(text)
        if not creative:
            reply = await self._matcher.match(turn)
            if reply is not None:
                return reply

        if self._agent is None:
            return await self._without_model(turn, creative)

        try:
            outcome = await self._agent.run(ctx, text)
        except ProviderError as exc:
            logger.warning("Model unavailable (%s): %s", exc.reason.value, exc)
            return await self._without_model(turn, creative)

        data = {"toolSteps": [s.to_dict() for s in outcome.steps]} if outcome.steps else None
        return AssistantReply(
            text=outcome.text,
            source=outcome.provider,
            data=data,
            awaiting="confirmation" if outcome.pending_confirmation else None,
        )

    async def _without_model(self, turn: Turn, creative: bool) -> AssistantReply:
        """Local rules for text that skipped them, then the offline notice."""
        if creative:
            reply = await self._matcher.match(turn)
            if reply is not None:
                return replace(reply, source=ReplySource.LOCAL_FALLBACK.value)
        return AssistantReply(text=OFFLINE_REPLY, source=ReplySource.OFFLINE.value)
