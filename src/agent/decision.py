"""
agent.decision - Parse the model's planning reply into a tagged union.

The model is asked for strict JSON:
    {"useTool": bool, "toolName": str, "args": {}, "reason": str,
     "needsAnotherTool": bool, "finalAnswer": str | null}

parse_decision() never raises. Anything that is not a usable JSON object
becomes ParseFailure, which the loop treats exactly like useTool=false.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as SchemaError

logger = logging.getLogger(__name__)


class DecisionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    use_tool: bool = Field(default=False, alias="useTool")
    tool_name: Optional[str] = Field(default=None, alias="toolName")
    args: dict[str, Any] = Field(default_factory=dict)
    reason: str = ""
    needs_another_tool: bool = Field(default=False, alias="needsAnotherTool")
    final_answer: Optional[str] = Field(default=None, alias="finalAnswer")

    @field_validator("args", mode="before")
    @classmethod
    def coerce_args(cls, v: object) -> object:
        """null -> {}; a JSON-encoded string is decoded."""
        if v is None:
            return {}
        if isinstance(v, str):
            try:
                return json.loads(v) if v.strip() else {}
            except json.JSONDecodeError:
                return v
        return v

    @field_validator("reason", mode="before")
    @classmethod
    def coerce_reason(cls, v: object) -> str:
        return "" if v is None else str(v)


@dataclass(frozen=True)
class ToolDecision:
    tool_name: str
    args: dict[str, Any] = field(default_factory=dict)
    reason: str = ""
    needs_another_tool: bool = False


@dataclass(frozen=True)
class FinalDecision:
    final_answer: Optional[str] = None
    reason: str = ""


@dataclass(frozen=True)
class ParseFailure:
    raw: str
    error: str


Decision = Union[ToolDecision, FinalDecision, ParseFailure]


def extract_json(text: str) -> Optional[str]:
    """Strip ``` fences and slice from the first '{' to the last '}'."""
    raw = (text or "").strip()
    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", raw, re.IGNORECASE)
    if fenced:
        raw = fenced.group(1)
    start, end = raw.find("{"), raw.rfind("}")
    if start == -1 or end <= start:
        return None
    return raw[start:end + 1]


def parse_decision(text: str) -> Decision:
    candidate = extract_json(text)
    if candidate is None:
        return ParseFailure(raw=text or "", error="no JSON object found")
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        return ParseFailure(raw=text, error=f"invalid JSON: {exc.msg}")
    if not isinstance(data, dict):
        return ParseFailure(raw=text, error="decision is not a JSON object")
    try:
        payload = DecisionPayload.model_validate(data)
    except SchemaError as exc:
        return ParseFailure(raw=text, error=f"unexpected decision shape: {exc.errors()[0].get('msg')}")

    tool = (payload.tool_name or "").strip()
    if payload.use_tool and tool and tool.lower() != "none":
        return ToolDecision(
            tool_name=tool,
            args=payload.args,
            reason=payload.reason,
            needs_another_tool=payload.needs_another_tool,
        )
    answer = (payload.final_answer or "").strip()
    return FinalDecision(final_answer=answer or None, reason=payload.reason)
