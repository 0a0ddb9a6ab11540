"""
agent.prompt - Message builders for the planning and synthesis calls.

The decision prompt lists the registered tools dynamically so the model
only ever sees the allow-listed catalog.
"""

from __future__ import annotations

from agent.tools.registry import ToolRegistry
from domain.ports import ChatMessage

ASSISTANT_PERSONA = (
    "You are the shop admin assistant for a small print-on-demand shop. "
    "Use the provided CONTEXT and TOOL RESULTS faithfully. If they do not contain "
    "the answer, say so and suggest the next best step. Keep answers concise. "
    "Never invent inventory counts, order numbers or other business data."
)


def build_decision_prompt(registry: ToolRegistry) -> str:
    """System prompt for one planning step."""
    return f"""{ASSISTANT_PERSONA}

Decide whether calling ONE tool will help answer the QUESTION.

AVAILABLE TOOLS (arguments ending in ? are optional):
{registry.describe()}

RULES:
1. Reply with strict JSON only, no prose, in exactly this shape:
   {{"useTool": true|false, "toolName": "<tool name or none>", "args": {{}},
     "reason": "<short>", "needsAnotherTool": true|false, "finalAnswer": "<text or null>"}}
2. If no tool is needed, set useTool=false, toolName="none" and put the answer in finalAnswer.
3. Use only the tool names listed above.
4. Destructive tools (deleteInventoryItem, deleteOrder) need confirmToken exactly
   "CONFIRM DELETE <id>". Only send it when the user typed that phrase.
5. Set needsAnotherTool=true only when a further tool call is required after this one.
"""


def decision_messages(
    registry: ToolRegistry, question: str, context: str, transcript: str,
) -> list[ChatMessage]:
    return [
        ChatMessage("system", build_decision_prompt(registry)),
        ChatMessage(
            "user",
            f"QUESTION: {question}\n\nCONTEXT:\n{context or '(none)'}\n\n"
            f"TOOL RESULTS SO FAR:\n{transcript}",
        ),
    ]


def synthesis_messages(question: str, context: str, transcript: str) -> list[ChatMessage]:
    return [
        ChatMessage("system", ASSISTANT_PERSONA),
        ChatMessage("user", f"QUESTION: {question}"),
        ChatMessage("user", f"CONTEXT:\n{context or '(none)'}"),
        ChatMessage("user", f"TOOL RESULTS:\n{transcript}"),
    ]
