"""
agent.tools.orders - Order tools for the agent loop.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from agent.tools.base import BaseTool, ToolInput, ToolResult, delete_token
from application.context import SessionContext
from application.services.action_executor import ActionExecutor, build_action
from application.services.orders import OrderService
from domain.exceptions import NotFoundError
from domain.models import ActionType

MAX_LISTED = 100


class ListOrdersInput(ToolInput):
    limit: Optional[int] = Field(default=20, ge=1, description="How many orders to return (max 100)")


class UpdateOrderStatusInput(ToolInput):
    id: str = Field(..., min_length=1, description="Order id or order number")
    status: str = Field(..., description="Pending | Processing | Shipped | Delivered | Cancelled")


class CreateOrderInput(ToolInput):
    customer_name: str = Field(..., min_length=1, alias="customerName")
    product: Optional[str] = Field(default=None, description="Product name")
    product_id: Optional[str] = Field(default=None, alias="productId")
    product_sku: Optional[str] = Field(default=None, alias="productSku")
    quantity: int = Field(..., ge=1)
    price: Optional[float] = Field(default=None, ge=0, description="Unit price; item price when omitted")


class DeleteOrderInput(ToolInput):
    id: str = Field(..., min_length=1)
    confirm_token: Optional[str] = Field(default=None, alias="confirmToken")


class ListOrdersTool(BaseTool):
    name = "listOrders"
    description = "List recent orders with number, customer, product, quantity, price and status."

    def __init__(self, orders: OrderService):
        self._orders = orders

    def get_schema(self) -> type[BaseModel]:
        return ListOrdersInput

    async def execute(self, ctx: SessionContext, limit: Optional[int] = 20, **_: Any) -> ToolResult:
        orders = await self._orders.orders(limit=min(limit or 20, MAX_LISTED))
        return ToolResult(outcome={
            "count": len(orders),
            "orders": [
                {"id": o.id, "orderNumber": o.order_number, "customerName": o.customer_name,
                 "product": o.product, "quantity": o.quantity, "price": o.price, "status": o.status}
                for o in orders
            ],
        })


class UpdateOrderStatusTool(BaseTool):
    name = "updateOrderStatus"
    description = "Change an order's status."

    def __init__(self, executor: ActionExecutor):
        self._executor = executor

    def get_schema(self) -> type[BaseModel]:
        return UpdateOrderStatusInput

    async def execute(self, ctx: SessionContext, id: str = "", status: str = "", **_: Any) -> ToolResult:
        action = build_action(ActionType.UPDATE_ORDER_STATUS, {"id": id, "status": status})
        return ToolResult.from_action(action, await self._executor.execute(action, ctx.client_id))


class CreateOrderTool(BaseTool):
    name = "createOrder"
    description = (
        "Create an order for a customer. Identify the product by product name, "
        "productId or productSku. Decrements product and packaging stock."
    )

    def __init__(self, executor: ActionExecutor):
        self._executor = executor

    def get_schema(self) -> type[BaseModel]:
        return CreateOrderInput

    async def execute(
        self,
        ctx: SessionContext,
        customer_name: str = "",
        quantity: int = 1,
        product: Optional[str] = None,
        product_id: Optional[str] = None,
        product_sku: Optional[str] = None,
        price: Optional[float] = None,
        **_: Any,
    ) -> ToolResult:
        payload = {
            "customerName": customer_name, "quantity": quantity, "product": product,
            "productId": product_id, "productSku": product_sku, "price": price,
        }
        action = build_action(ActionType.CREATE_ORDER, {k: v for k, v in payload.items() if v is not None})
        return ToolResult.from_action(action, await self._executor.execute(action, ctx.client_id))


class DeleteOrderTool(BaseTool):
    name = "deleteOrder"
    description = (
        "Delete an order. Only runs when confirmToken is exactly 'CONFIRM DELETE <id>'; "
        "otherwise asks the user to confirm."
    )

    def __init__(self, orders: OrderService, executor: ActionExecutor):
        self._orders = orders
        self._executor = executor

    def get_schema(self) -> type[BaseModel]:
        return DeleteOrderInput

    async def execute(
        self, ctx: SessionContext, id: str = "", confirm_token: Optional[str] = None, **_: Any,
    ) -> ToolResult:
        token = delete_token(id)
        if (confirm_token or "").strip() != token:
            try:
                order = await self._orders.find(id)
                label = f"order {order.reference} for {order.customer_name}"
            except NotFoundError:
                label = f"order {id}"
            return ToolResult.confirmation_required(
                f'⚠️ Deleting {label} cannot be undone. Reply "{token}" to proceed.', token,
            )
        action = build_action(ActionType.DELETE_ORDER, {"id": id})
        return ToolResult.from_action(action, await self._executor.execute(action, ctx.client_id))
