"""
application.services.action_executor - Validate and apply one Action.

execute() is the single mutation gate used by both the local intent rules
and the agent's tools. It:
    1. validates the payload against the pydantic model for action.type
    2. performs exactly one logical mutation through the services
    3. returns an ActionResult (success or "❌ ..." message), never raising
    4. on inventory creation / restock, remembers the item as lastInventory
       so the next turn can say "set price to 20" without naming it
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PayloadError

from application.services.inventory import InventoryService
from application.services.orders import OrderService
from application.services.session_store import SessionStore
from domain.exceptions import AmbiguousReferenceError, DomainError
from domain.models import Action, ActionResult, ActionType, ItemRef

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Payload models
# ---------------------------------------------------------------------------

class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class IncrementStockPayload(_Payload):
    id: str = Field(..., min_length=1)
    delta: int


class UpdateStockPayload(_Payload):
    id: str = Field(..., min_length=1)
    stock: int = Field(..., ge=0)


class UpdateFieldsPayload(_Payload):
    id: str = Field(..., min_length=1)
    changes: dict[str, Any] = Field(..., min_length=1, alias="fields")


class CreateInventoryPayload(_Payload):
    name: str = Field(..., min_length=1)
    stock: int = Field(default=0, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    threshold: Optional[int] = Field(default=None, ge=0)
    sku: Optional[str] = None


class CreateMaterialPayload(_Payload):
    name: str = Field(..., min_length=1)
    stock: int = Field(default=0, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    sku: Optional[str] = None
    unit: Optional[str] = None


class CreatePackingPayload(_Payload):
    name: str = Field(..., min_length=1)
    dimensions: Union[str, dict[str, Any]]
    stock: int = Field(default=0, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    sku: Optional[str] = None
    threshold: Optional[int] = Field(default=None, ge=0)


class CreateProductPayload(_Payload):
    name: str = Field(..., min_length=1)
    price: Optional[float] = Field(default=None, ge=0)
    quantity: int = Field(default=0, ge=0)
    material_ids: list[str] = Field(default_factory=list, alias="materialIds")
    packaging_id: str = Field(default="", alias="packagingId")
    sku: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")

    @field_validator("material_ids", mode="before")
    @classmethod
    def coerce_ids(cls, v: object) -> list[str]:
        """Accept a single id, a comma separated string or a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return [str(i) for i in v]  # type: ignore[union-attr]


class BulkImportPayload(_Payload):
    items: list[dict[str, Any]] = Field(..., min_length=1)
    default_category: Optional[str] = Field(default=None, alias="defaultCategory")


class DeletePayload(_Payload):
    id: str = Field(..., min_length=1)


class CreateOrderPayload(_Payload):
    customer_name: str = Field(..., min_length=1, alias="customerName")
    product: Optional[str] = None
    product_id: Optional[str] = Field(default=None, alias="productId")
    product_sku: Optional[str] = Field(default=None, alias="productSku")
    quantity: int = Field(..., ge=1)
    price: Optional[float] = Field(default=None, ge=0)
    status: str = "Pending"
    notes: str = ""


class UpdateOrderStatusPayload(_Payload):
    id: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)


PAYLOAD_MODELS: dict[ActionType, type[_Payload]] = {
    ActionType.INCREMENT_INVENTORY_STOCK: IncrementStockPayload,
    ActionType.UPDATE_INVENTORY_STOCK: UpdateStockPayload,
    ActionType.UPDATE_INVENTORY_FIELDS: UpdateFieldsPayload,
    ActionType.CREATE_INVENTORY: CreateInventoryPayload,
    ActionType.CREATE_MATERIAL: CreateMaterialPayload,
    ActionType.CREATE_PACKING_MATERIAL: CreatePackingPayload,
    ActionType.CREATE_PRODUCT: CreateProductPayload,
    ActionType.BULK_IMPORT_INVENTORY: BulkImportPayload,
    ActionType.DELETE_INVENTORY: DeletePayload,
    ActionType.CREATE_ORDER: CreateOrderPayload,
    ActionType.UPDATE_ORDER_STATUS: UpdateOrderStatusPayload,
    ActionType.DELETE_ORDER: DeletePayload,
}

_ROUTES: dict[ActionType, tuple[str, str]] = {
    ActionType.INCREMENT_INVENTORY_STOCK: ("/inventory/{id}/stock", "PATCH"),
    ActionType.UPDATE_INVENTORY_STOCK: ("/inventory/{id}/stock", "PUT"),
    ActionType.UPDATE_INVENTORY_FIELDS: ("/inventory/{id}", "PATCH"),
    ActionType.CREATE_INVENTORY: ("/inventory", "POST"),
    ActionType.CREATE_MATERIAL: ("/inventory/materials", "POST"),
    ActionType.CREATE_PACKING_MATERIAL: ("/inventory/packing-materials", "POST"),
    ActionType.CREATE_PRODUCT: ("/inventory/products", "POST"),
    ActionType.BULK_IMPORT_INVENTORY: ("/inventory/bulk", "POST"),
    ActionType.DELETE_INVENTORY: ("/inventory/{id}", "DELETE"),
    ActionType.CREATE_ORDER: ("/orders", "POST"),
    ActionType.UPDATE_ORDER_STATUS: ("/orders/{id}/status", "PATCH"),
    ActionType.DELETE_ORDER: ("/orders/{id}", "DELETE"),
}


def build_action(action_type: ActionType, payload: dict[str, Any]) -> Action:
    """Attach the endpoint/method an action type corresponds to."""
    path, method = _ROUTES[action_type]
    if "{id}" in path:
        path = path.replace("{id}", str(payload.get("id", "")))
    return Action(type=action_type, payload=dict(payload), endpoint=path, method=method)


def _describe_payload_error(exc: PayloadError) -> str:
    first = exc.errors()[0]
    where = ".".join(str(p) for p in first.get("loc", ())) or "payload"
    return f"{where}: {first.get('msg', 'invalid value')}"


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

class ActionExecutor:
    """Apply validated Actions to inventory and orders."""

    def __init__(
        self,
        inventory: InventoryService,
        orders: OrderService,
        sessions: Optional[SessionStore] = None,
    ):
        self._inventory = inventory
        self._orders = orders
        self._sessions = sessions

    async def execute(self, action: Action, client_id: Optional[str] = None) -> ActionResult:
        model = PAYLOAD_MODELS.get(action.type)
        if model is None:
            return ActionResult(False, f"❌ Unsupported action type: {action.type}")
        try:
            payload = model.model_validate(action.payload)
        except PayloadError as exc:
            message = f"❌ Invalid {action.type.value} request ({_describe_payload_error(exc)})"
            logger.info("Rejected %s: %s", action.type.value, message)
            return ActionResult(False, message)

        handler = getattr(self, f"_do_{action.type.value}")
        try:
            result, touched = await handler(payload)
        except AmbiguousReferenceError as exc:
            names = ", ".join(f"{c.name} ({c.sku or 'N/A'})" for c in exc.candidates[:7])
            return ActionResult(
                False,
                f"❌ Multiple items match \"{exc.term}\": {names}. Please specify the SKU.",
                {"candidates": [{"id": c.id, "name": c.name, "sku": c.sku} for c in exc.candidates]},
            )
        except DomainError as exc:
            return ActionResult(False, f"❌ {exc}")
        except Exception:
            logger.exception("Unexpected failure executing %s", action.type.value)
            return ActionResult(False, f"❌ Failed to execute {action.type.value}. Please try again.")

        if touched is not None and client_id and self._sessions is not None:
            try:
                await self._sessions.set(client_id, {
                    "last_inventory": ItemRef(id=touched.id, name=touched.name, sku=touched.sku),
                })
            except Exception:
                # The mutation already happened; only the follow-up memory is lost
                logger.exception("Could not record last touched item for %s", client_id)
        logger.info("Executed %s -> %s", action.type.value, result.message[:80])
        return result

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    async def _do_increment_inventory_stock(self, p: IncrementStockPayload):
        item, new_stock = await self._inventory.adjust_stock(p.id, p.delta)
        sign = "+" if p.delta >= 0 else ""
        return ActionResult(
            True,
            f"✅ Added {sign}{p.delta} to {item.label}. New stock: {new_stock}",
            {"id": item.id, "sku": item.sku, "newStock": new_stock},
        ), item

    async def _do_update_inventory_stock(self, p: UpdateStockPayload):
        item = await self._inventory.set_stock(p.id, p.stock)
        return ActionResult(
            True, f"✅ Updated {item.label} stock to {p.stock}",
            {"id": item.id, "sku": item.sku, "newStock": p.stock},
        ), item

    async def _do_update_inventory_fields(self, p: UpdateFieldsPayload):
        item = await self._inventory.update_fields(p.id, p.changes)
        changes = ", ".join(f"{k} → {v}" for k, v in p.changes.items())
        return ActionResult(
            True, f"✅ Updated {item.label}: {changes}", {"id": item.id, "sku": item.sku},
        ), item

    async def _do_create_inventory(self, p: CreateInventoryPayload):
        created = await self._inventory.create_item(
            name=p.name, stock=p.stock, price=p.price, category=p.category,
            threshold=p.threshold, sku=p.sku,
        )
        item = created.item
        return ActionResult(
            True,
            f"✅ Created inventory item: {item.name} ({item.sku}) with {item.stock} units"
            + created.defaults_note(),
            {"id": item.id, "sku": item.sku, "defaults": created.defaults},
        ), item

    async def _do_create_material(self, p: CreateMaterialPayload):
        item = await self._inventory.add_material(p.name, p.stock, p.price, p.sku, p.unit)
        return ActionResult(
            True, f"✅ Added material: {item.name} ({item.sku}) with {item.stock} units",
            {"id": item.id, "sku": item.sku},
        ), item

    async def _do_create_packing_material(self, p: CreatePackingPayload):
        item = await self._inventory.add_packing_material(
            p.name, p.dimensions, p.stock, p.price, p.sku, p.threshold,
        )
        return ActionResult(
            True,
            f"✅ Added packing material: {item.name} ({item.sku}) {item.dimensions} "
            f"with {item.stock} units",
            {"id": item.id, "sku": item.sku},
        ), item

    async def _do_create_product(self, p: CreateProductPayload):
        if p.price is None:
            return ActionResult(
                False, '❌ Price is missing for product creation. Please specify like "price 25".',
            ), None
        item = await self._inventory.create_product(
            name=p.name, price=p.price, quantity=p.quantity, material_ids=p.material_ids,
            packaging_id=p.packaging_id, sku=p.sku, image_url=p.image_url,
        )
        parts = []
        if item.materials:
            parts.append(f"{len(item.materials)} material(s)")
        if item.packaging_id:
            parts.append("packaging attached")
        if p.image_url:
            parts.append("image linked")
        extras = f" ({', '.join(parts)})" if parts else ""
        return ActionResult(
            True,
            f'✅ Created product "{item.name}" (SKU {item.sku}) qty {item.stock} '
            f"at ${item.price:.2f}{extras}.",
            {"id": item.id, "sku": item.sku},
        ), item

    async def _do_bulk_import_inventory(self, p: BulkImportPayload):
        report = await self._inventory.bulk_import(p.items, p.default_category)
        counts = report["counts"]
        return ActionResult(
            counts["created"] > 0,
            f"✅ Imported {counts['created']} item(s); skipped {counts['skipped']}."
            if counts["created"] else f"❌ No items imported; skipped {counts['skipped']}.",
            report,
        ), None

    async def _do_delete_inventory(self, p: DeletePayload):
        item = await self._inventory.delete_item(p.id)
        return ActionResult(
            True, f"✅ Deleted inventory item: {item.name} ({item.sku or 'N/A'})", {"id": item.id},
        ), None

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def _do_create_order(self, p: CreateOrderPayload):
        created = await self._orders.create_order(
            customer_name=p.customer_name, quantity=p.quantity, product=p.product,
            product_id=p.product_id, product_sku=p.product_sku, price=p.price,
            status=p.status, notes=p.notes,
        )
        order = created.order
        return ActionResult(
            True,
            f"✅ Created order {order.order_number} for {order.customer_name} "
            f"({order.quantity} × {order.product})",
            {
                "id": order.id,
                "orderNumber": order.order_number,
                "stockAdjustments": [a.to_dict() for a in created.adjustments],
            },
        ), None

    async def _do_update_order_status(self, p: UpdateOrderStatusPayload):
        order = await self._orders.update_status(p.id, p.status)
        return ActionResult(
            True, f"✅ Order {order.reference} marked as {order.status}",
            {"id": order.id, "status": order.status},
        ), None

    async def _do_delete_order(self, p: DeletePayload):
        order = await self._orders.delete_order(p.id)
        return ActionResult(True, f"✅ Deleted order: {order.reference}", {"id": order.id}), None
