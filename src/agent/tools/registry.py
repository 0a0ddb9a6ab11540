"""
agent.tools.registry - Tool registration, discovery, and invocation.

The registry is the allow-list: the agent loop may only run tools whose
names are registered here. invoke() validates the model's arguments
against the tool's schema before calling it.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as SchemaError

from agent.tools.base import BaseTool, ToolResult
from application.context import SessionContext
from domain.exceptions import ValidationError

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Manages tool registration and invocation."""

    def __init__(self):
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool by its name."""
        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def get(self, name: str) -> BaseTool:
        """Get a tool by name."""
        if name not in self._tools:
            raise KeyError(f"Tool '{name}' not registered")
        return self._tools[name]

    def all(self) -> list[BaseTool]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    async def invoke(self, name: str, ctx: SessionContext, args: dict[str, Any]) -> ToolResult:
        """Validate args and run the tool.

        Raises KeyError for unknown tools and ValidationError for bad args.
        """
        tool = self.get(name)
        try:
            parsed = tool.get_schema().model_validate(args or {})
        except SchemaError as exc:
            first = exc.errors()[0]
            where = ".".join(str(p) for p in first.get("loc", ())) or "args"
            raise ValidationError(f"Invalid arguments for {name}: {where} {first.get('msg', '')}".strip())

        return await tool.execute(ctx, **parsed.model_dump())

    def describe(self) -> str:
        """One line per tool: name{arg, optional?}: description."""
        lines = []
        for tool in self._tools.values():
            schema = tool.get_schema()
            args = []
            for field_name, info in schema.model_fields.items():
                label = info.alias or field_name
                args.append(label if info.is_required() else f"{label}?")
            lines.append(f"- {tool.name}{{{', '.join(args)}}}: {tool.description}")
        return "\n".join(lines)
