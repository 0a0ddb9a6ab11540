"""
agent.tools.products - Finished-product creation tool.

Unlike the chat flow, the model must already know the material and
packaging ids (e.g. from getInventorySummary); nothing is disambiguated
here. Invalid ids are rejected by the inventory service.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from agent.tools.base import BaseTool, ToolInput, ToolResult
from application.context import SessionContext
from application.services.action_executor import ActionExecutor, build_action
from domain.models import ActionType


class InitiateProductCreationInput(ToolInput):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    quantity: int = Field(default=0, ge=0)
    materials_ids: list[str] = Field(default_factory=list, alias="materialsIds")
    packaging_id: Optional[str] = Field(default=None, alias="packagingId")

    @field_validator("materials_ids", mode="before")
    @classmethod
    def coerce_ids(cls, v: object) -> list[str]:
        """Models sometimes send a single id or null instead of a list."""
        if v is None or v == "":
            return []
        if isinstance(v, (str, int)):
            return [str(v)]
        return [str(i) for i in v]  # type: ignore[union-attr]


class InitiateProductCreationTool(BaseTool):
    name = "initiateProductCreation"
    description = (
        "Create a finished product (category Products) with price and quantity, "
        "linking raw-material ids and an optional packaging item id."
    )

    def __init__(self, executor: ActionExecutor):
        self._executor = executor

    def get_schema(self) -> type[BaseModel]:
        return InitiateProductCreationInput

    async def execute(
        self,
        ctx: SessionContext,
        name: str = "",
        price: float = 0.0,
        quantity: int = 0,
        materials_ids: Optional[list[str]] = None,
        packaging_id: Optional[str] = None,
        **_: Any,
    ) -> ToolResult:
        action = build_action(ActionType.CREATE_PRODUCT, {
            "name": name,
            "price": price,
            "quantity": quantity,
            "materialIds": materials_ids or [],
            "packagingId": packaging_id or "",
            "imageUrl": ctx.image_attachment,
        })
        return ToolResult.from_action(action, await self._executor.execute(action, ctx.client_id))
