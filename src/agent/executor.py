"""
agent.executor - Bounded planner/executor loop.

Entered only when no local rule handled the message:

    retrieve context
    repeat up to max_steps:
        ask the model for a JSON decision
        stop on parse failure, "no tool" or an unknown (denied) tool
        run the tool; errors become {"error": ...} and feed the next round
        stop on pendingConfirmation or needsAnotherTool=false
    if no answer yet: one synthesis call over question + context + transcript

No component construction, no global state. Every step is sequential
within the request; the step counter is the only cancellation mechanism.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from agent.decision import FinalDecision, ParseFailure, ToolDecision, parse_decision
from agent.prompt import decision_messages, synthesis_messages
from agent.tools.base import ToolResult
from agent.tools.registry import ToolRegistry
from agent.transcript import ToolTranscript
from application.context import SessionContext
from application.services.scope_filter import ScopeFilter
from domain.exceptions import DomainError, ProviderError
from domain.models import ToolStep
from domain.ports import ChatProviderPort, ContextRetrieverPort

logger = logging.getLogger(__name__)

EMPTY_ANSWER = "I couldn't find an answer to that. Try asking for an inventory summary or order status."


@dataclass(frozen=True)
class AgentOutcome:
    """What one run produced and which provider produced it."""
    text: str
    provider: str
    steps: list[ToolStep] = field(default_factory=list)
    pending_confirmation: bool = False


class AgentExecutor:
    """Runs the model + tool selection loop.

    Constructed by factory.py with all dependencies injected.
    Stateless per call; all state lives in the run's ToolTranscript.
    """

    def __init__(
        self,
        provider: ChatProviderPort,
        tools: ToolRegistry,
        scope_filter: ScopeFilter,
        retriever: Optional[ContextRetrieverPort] = None,
        max_steps: int = 3,
        transcript_chars: int = 600,
    ):
        self._provider = provider
        self._tools = tools
        self._scope = scope_filter
        self._retriever = retriever
        self._max_steps = max_steps
        self._transcript_chars = transcript_chars

    async def run(self, ctx: SessionContext, question: str) -> AgentOutcome:
        """Answer question, calling at most max_steps tools.

        Raises ProviderError only when the model could not be reached at
        all (first decision failed, or synthesis failed with nothing to
        fall back on).
        """
        context = await self._retrieve(question)
        transcript = ToolTranscript(entry_chars=self._transcript_chars)
        answer: Optional[str] = None
        provider_name = self._provider.name
        pending = False

        logger.info("Agent run (client=%s, request=%s): %s",
                    ctx.client_id, ctx.request_id, question[:80])

        for step in range(self._max_steps):
            messages = decision_messages(self._tools, question, context, transcript.render())
            try:
                reply = await self._provider.complete(messages)
            except ProviderError:
                if step == 0:
                    raise
                logger.warning("Decision call %d failed; moving to synthesis", step + 1)
                break
            provider_name = reply.provider

            decision = parse_decision(reply.text)
            if isinstance(decision, ParseFailure):
                logger.info("Unparseable decision (%s); ending loop", decision.error)
                break
            if isinstance(decision, FinalDecision):
                answer = decision.final_answer
                break

            if decision.tool_name not in self._tools:
                logger.warning("Denied unknown tool '%s'", decision.tool_name)
                transcript.add(ToolStep(tool=decision.tool_name,
                                        outcome={"error": "tool not allowed"}, denied=True))
                break

            result = await self._run_tool(ctx, decision)
            transcript.add(ToolStep(tool=decision.tool_name, outcome=result.outcome))
            if result.pending_confirmation:
                answer, pending = result.message, True
                break
            if not decision.needs_another_tool:
                break

        if answer is None:
            answer, provider_name = await self._synthesize(question, context, transcript, provider_name)
        elif not pending:
            answer = self._scope.sanitize(answer)

        logger.info("Agent finished: %d tool step(s) via %s", len(transcript), provider_name)
        return AgentOutcome(text=answer, provider=provider_name, steps=transcript.steps,
                            pending_confirmation=pending)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _retrieve(self, question: str) -> str:
        if self._retriever is None:
            return ""
        try:
            return await self._retriever.retrieve(question)
        except Exception:
            logger.exception("Context retrieval failed; continuing without context")
            return ""

    async def _run_tool(self, ctx: SessionContext, decision: ToolDecision) -> ToolResult:
        logger.info("Tool %s args=%s (%s)", decision.tool_name, decision.args, decision.reason[:80])
        try:
            return await self._tools.invoke(decision.tool_name, ctx, decision.args)
        except DomainError as exc:
            return ToolResult(outcome={"error": str(exc)})
        except Exception as exc:
            logger.exception("Tool %s crashed", decision.tool_name)
            return ToolResult(outcome={"error": f"{decision.tool_name} failed: {exc}"})

    async def _synthesize(
        self, question: str, context: str, transcript: ToolTranscript, provider_name: str,
    ) -> tuple[str, str]:
        messages = synthesis_messages(question, context, transcript.render_full())
        try:
            reply = await self._provider.complete(messages)
        except ProviderError:
            if not len(transcript):
                raise
            logger.warning("Synthesis failed; answering with the last tool message")
            return transcript.last_message() or EMPTY_ANSWER, provider_name
        text = reply.text.strip()
        return (self._scope.sanitize(text) if text else EMPTY_ANSWER), reply.provider
