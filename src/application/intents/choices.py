"""Numbered candidate lists shown while a PendingChoice is open."""

from __future__ import annotations

from typing import Iterable

from domain.models import AssistantReply, Candidate

REPROMPT_HEADER = "Please choose an option by number or SKU:"


def choice_reply(header: str, candidates: Iterable[Candidate]) -> AssistantReply:
    listed = list(candidates)
    lines = "\n".join(f"{i}. {c.label}" for i, c in enumerate(listed, start=1))
    return AssistantReply(
        text=f"{header}\n{lines}",
        awaiting="choice",
        options=[{"label": c.label, "send": str(i)} for i, c in enumerate(listed, start=1)],
    )
