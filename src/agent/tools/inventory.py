"""
agent.tools.inventory - Inventory tools for the agent loop.

Mutations are expressed as Actions and go through ActionExecutor, the same
gate the local rules use. deleteInventoryItem refuses to run unless the
model passes the exact confirmation token for that id.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from agent.tools.base import BaseTool, ToolInput, ToolResult, delete_token
from application.context import SessionContext
from application.services.action_executor import ActionExecutor, build_action
from application.services.inventory import InventoryService
from domain.exceptions import NotFoundError
from domain.models import ActionType


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class NoInput(ToolInput):
    pass


class CreateInventoryItemInput(ToolInput):
    name: str = Field(..., min_length=1, description="Item name, e.g. 'Black T-Shirt M'")
    price: Optional[float] = Field(default=None, ge=0, description="Unit price; derived when omitted")
    stock: int = Field(default=0, ge=0, description="Units on hand")
    category: Optional[str] = Field(default=None, description="Category; derived when omitted")
    sku: Optional[str] = Field(default=None, description="SKU; generated when omitted")


class UpdateInventoryStockInput(ToolInput):
    id: str = Field(..., min_length=1, description="Inventory item id")
    stock: int = Field(..., ge=0, description="New absolute stock level")


class BulkImportInventoryInput(ToolInput):
    items: list[dict[str, Any]] = Field(..., min_length=1,
                                        description="Rows with name and optional stock/price/category/sku")
    default_category: Optional[str] = Field(default=None, alias="defaultCategory")


class DeleteInventoryItemInput(ToolInput):
    id: str = Field(..., min_length=1)
    confirm_token: Optional[str] = Field(default=None, alias="confirmToken")


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

class GetInventorySummaryTool(BaseTool):
    name = "getInventorySummary"
    description = "Live inventory totals: SKUs, units, low/out of stock, value, lowest items."

    def __init__(self, inventory: InventoryService):
        self._inventory = inventory

    def get_schema(self) -> type[BaseModel]:
        return NoInput

    async def execute(self, ctx: SessionContext, **kwargs) -> ToolResult:
        summary = await self._inventory.summary()
        return ToolResult(outcome={**summary.to_dict(), "message": summary.render()})


class CreateInventoryItemTool(BaseTool):
    name = "createInventoryItem"
    description = (
        "Create a new inventory item. Missing price/category/sku are filled with "
        "defaults and reported in the message."
    )

    def __init__(self, executor: ActionExecutor):
        self._executor = executor

    def get_schema(self) -> type[BaseModel]:
        return CreateInventoryItemInput

    async def execute(
        self,
        ctx: SessionContext,
        name: str = "",
        price: Optional[float] = None,
        stock: int = 0,
        category: Optional[str] = None,
        sku: Optional[str] = None,
        **_: Any,
    ) -> ToolResult:
        payload = {"name": name, "stock": stock, "price": price, "category": category, "sku": sku}
        action = build_action(ActionType.CREATE_INVENTORY,
                              {k: v for k, v in payload.items() if v is not None})
        return ToolResult.from_action(action, await self._executor.execute(action, ctx.client_id))


class UpdateInventoryStockTool(BaseTool):
    name = "updateInventoryStock"
    description = "Set the absolute stock level of an inventory item by id."

    def __init__(self, executor: ActionExecutor):
        self._executor = executor

    def get_schema(self) -> type[BaseModel]:
        return UpdateInventoryStockInput

    async def execute(self, ctx: SessionContext, id: str = "", stock: int = 0, **_: Any) -> ToolResult:
        action = build_action(ActionType.UPDATE_INVENTORY_STOCK, {"id": id, "stock": stock})
        return ToolResult.from_action(action, await self._executor.execute(action, ctx.client_id))


class BulkImportInventoryTool(BaseTool):
    name = "bulkImportInventory"
    description = "Create many inventory items at once; invalid rows are skipped and reported."

    def __init__(self, executor: ActionExecutor):
        self._executor = executor

    def get_schema(self) -> type[BaseModel]:
        return BulkImportInventoryInput

    async def execute(
        self,
        ctx: SessionContext,
        items: Optional[list[dict[str, Any]]] = None,
        default_category: Optional[str] = None,
        **_: Any,
    ) -> ToolResult:
        action = build_action(ActionType.BULK_IMPORT_INVENTORY,
                              {"items": items or [], "defaultCategory": default_category})
        return ToolResult.from_action(action, await self._executor.execute(action, ctx.client_id))


class DeleteInventoryItemTool(BaseTool):
    name = "deleteInventoryItem"
    description = (
        "Delete an inventory item. Only runs when confirmToken is exactly "
        "'CONFIRM DELETE <id>'; otherwise asks the user to confirm."
    )

    def __init__(self, inventory: InventoryService, executor: ActionExecutor):
        self._inventory = inventory
        self._executor = executor

    def get_schema(self) -> type[BaseModel]:
        return DeleteInventoryItemInput

    async def execute(
        self, ctx: SessionContext, id: str = "", confirm_token: Optional[str] = None, **_: Any,
    ) -> ToolResult:
        token = delete_token(id)
        if (confirm_token or "").strip() != token:
            try:
                item = await self._inventory.get_item(id)
                label = f"{item.name} ({item.sku or 'N/A'})"
            except NotFoundError:
                label = f"item {id}"
            return ToolResult.confirmation_required(
                f'⚠️ Deleting {label} cannot be undone. Reply "{token}" to proceed.', token,
            )
        action = build_action(ActionType.DELETE_INVENTORY, {"id": id})
        return ToolResult.from_action(action, await self._executor.execute(action, ctx.client_id))
