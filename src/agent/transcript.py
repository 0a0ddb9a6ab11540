"""
agent.transcript - Per-run record of tool steps.

Lives only for one AgentExecutor.run() call. The decision prompt sees each
step truncated; the synthesis prompt sees the whole list under a cap.
"""

from __future__ import annotations

import json
from typing import Any

from domain.models import ToolStep


def _dump(outcome: dict[str, Any]) -> str:
    return json.dumps(outcome, ensure_ascii=False, default=str)


class ToolTranscript:
    """Ordered ToolSteps for a single request."""

    def __init__(self, entry_chars: int = 600, total_chars: int = 4000):
        self._entry_chars = entry_chars
        self._total_chars = total_chars
        self._steps: list[ToolStep] = []

    @property
    def steps(self) -> list[ToolStep]:
        return list(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def add(self, step: ToolStep) -> None:
        self._steps.append(step)

    def last_message(self) -> str:
        """Message (or error) of the most recent step, or ''."""
        for step in reversed(self._steps):
            text = step.outcome.get("message") or step.outcome.get("error")
            if text:
                return str(text)
        return ""

    def render(self) -> str:
        """Compact form for the decision prompt."""
        if not self._steps:
            return "(no tools called yet)"
        lines = []
        for i, step in enumerate(self._steps, start=1):
            status = "DENIED" if step.denied else _dump(step.outcome)[: self._entry_chars]
            lines.append(f"{i}. {step.tool} -> {status}")
        return "\n".join(lines)

    def render_full(self) -> str:
        """Full form for the synthesis prompt, capped at total_chars."""
        if not self._steps:
            return "(no tools were called)"
        text = "\n".join(
            f"{i}. {s.tool}{' (denied)' if s.denied else ''}: {_dump(s.outcome)}"
            for i, s in enumerate(self._steps, start=1)
        )
        return text[: self._total_chars]
