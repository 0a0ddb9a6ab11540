"""
agent.tools.base - Base tool interface and result container.

All agent tools inherit from BaseTool and return ToolResult. A tool's
input schema uses camelCase aliases (what the model is told to send);
execute() receives the validated snake_case keyword arguments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict

from application.context import SessionContext
from domain.models import Action, ActionResult


class ToolInput(BaseModel):
    """Base for tool argument schemas."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


@dataclass
class ToolResult:
    """Result returned by a tool execution.

    outcome:   JSON-serializable dict fed back to the model (and kept in the
               transcript). {"pendingConfirmation": True, "message": ...}
               stops the agent loop.
    """
    outcome: dict[str, Any] = field(default_factory=dict)

    @property
    def pending_confirmation(self) -> bool:
        return bool(self.outcome.get("pendingConfirmation"))

    @property
    def message(self) -> str:
        return str(self.outcome.get("message") or self.outcome.get("error") or "")

    @classmethod
    def from_action(cls, action: Action, result: ActionResult) -> ToolResult:
        return cls(outcome={**result.to_dict(), "action": action.to_dict()})

    @classmethod
    def confirmation_required(cls, message: str, token: str) -> ToolResult:
        return cls(outcome={"pendingConfirmation": True, "message": message, "confirmToken": token})


class BaseTool(ABC):
    """Abstract base for all agent tools."""

    name: str
    description: str

    @abstractmethod
    async def execute(self, ctx: SessionContext, **kwargs) -> ToolResult:
        """Execute the tool with the given session context and arguments."""
        ...

    @abstractmethod
    def get_schema(self) -> type[BaseModel]:
        """Return the Pydantic schema for this tool's input arguments."""
        ...


def delete_token(entity_id: str) -> str:
    """The literal token a destructive tool call must carry."""
    return f"CONFIRM DELETE {entity_id}"
