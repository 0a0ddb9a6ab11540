"""
application.services.orders - Order reads and mutations.

Orders reference a product by name. Creating an order resolves that
product against inventory (by id, SKU or name) and decrements its stock
and the stock of its packaging item, both clamped at zero.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from application.services.inventory import InventoryService, normalize_sku
from domain.exceptions import AmbiguousReferenceError, NotFoundError, ValidationError
from domain.models import InventoryItem, Order
from domain.ports import DocumentStorePort

logger = logging.getLogger(__name__)

COLLECTION = "orders"
ORDER_STATUSES = ("Pending", "Processing", "Shipped", "Delivered", "Cancelled")


@dataclass(frozen=True)
class OrdersOverview:
    pending: int
    processing: int
    delivered: int
    top_pending: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pending": self.pending,
            "processing": self.processing,
            "delivered": self.delivered,
            "topPending": self.top_pending,
        }

    def render(self) -> str:
        text = (
            "📋 **Orders Overview:**\n"
            f"- **Pending:** {self.pending}\n"
            f"- **Processing:** {self.processing}\n"
            f"- **Delivered:** {self.delivered}\n"
        )
        if self.top_pending:
            text += "\n📄 **Top pending orders:**\n" + "\n".join(
                f"• {o['orderNumber']} — {o['customer']} — ${o['total']:.2f}"
                for o in self.top_pending
            )
        return text


@dataclass(frozen=True)
class StockAdjustment:
    id: str
    name: str
    new_stock: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "newStock": self.new_stock}


@dataclass(frozen=True)
class CreatedOrder:
    order: Order
    adjustments: list[StockAdjustment] = field(default_factory=list)


def normalize_status(raw: str) -> str:
    """'delivered' -> 'Delivered'; raises ValidationError for unknown statuses."""
    wanted = (raw or "").strip().lower()
    if wanted == "canceled":
        wanted = "cancelled"
    for status in ORDER_STATUSES:
        if status.lower() == wanted:
            return status
    raise ValidationError(
        f"Invalid status '{raw}'. Use one of: {', '.join(ORDER_STATUSES)}"
    )


class OrderService:
    """Reads and writes order documents; adjusts inventory on creation."""

    def __init__(
        self,
        store: DocumentStorePort,
        inventory: InventoryService,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._inventory = inventory
        self._clock = clock

    async def orders(self, limit: int = 1000) -> list[Order]:
        docs = await self._store.list(COLLECTION, limit=limit)
        return [Order.from_doc(d) for d in docs]

    async def find(self, reference: str) -> Order:
        """Look an order up by order number or document id (case-insensitive)."""
        wanted = (reference or "").strip().upper()
        for order in await self.orders():
            if order.order_number.upper() == wanted or order.id.upper() == wanted:
                return order
        raise NotFoundError(f"Order {reference} not found")

    async def overview(self) -> OrdersOverview:
        orders = await self.orders()

        def with_status(status: str) -> list[Order]:
            return [o for o in orders if o.status.lower() == status]

        pending = with_status("pending")
        return OrdersOverview(
            pending=len(pending),
            processing=len(with_status("processing")),
            delivered=len(with_status("delivered")),
            top_pending=[
                {"orderNumber": o.reference, "id": o.id, "customer": o.customer_name,
                 "total": o.price}
                for o in pending[:5]
            ],
        )

    async def next_order_number(self) -> str:
        """ORD-YYYYMMDD-NNNN, sequential within the current UTC day."""
        day = datetime.fromtimestamp(self._clock(), timezone.utc).strftime("%Y%m%d")
        prefix = f"ORD-{day}-"
        highest = 0
        for order in await self.orders(limit=5000):
            if order.order_number.startswith(prefix):
                tail = order.order_number[len(prefix):]
                if tail.isdigit():
                    highest = max(highest, int(tail))
        return f"{prefix}{highest + 1:04d}"

    async def resolve_product(
        self,
        product: Optional[str] = None,
        product_id: Optional[str] = None,
        product_sku: Optional[str] = None,
    ) -> InventoryItem:
        """Find the inventory item an order refers to.

        Order of preference: id, SKU, exact name, unique partial name.
        Several partial matches raise AmbiguousReferenceError.
        """
        if product_id:
            return await self._inventory.get_item(product_id)
        if product_sku:
            item = await self._inventory.find_by_sku(product_sku)
            if item is None:
                raise NotFoundError(f"SKU {normalize_sku(product_sku)} not found")
            return item
        if not product:
            raise ValidationError("product, productId or productSku is required")
        exact = await self._inventory.find_by_name(product)
        if exact is not None:
            return exact
        matches = await self._inventory.match(product, limit=None)
        if len(matches) == 1:
            return matches[0]
        if matches:
            raise AmbiguousReferenceError(product, matches)
        raise NotFoundError(f"Product '{product}' not found in inventory")

    async def create_order(
        self,
        customer_name: str,
        quantity: Any,
        product: Optional[str] = None,
        product_id: Optional[str] = None,
        product_sku: Optional[str] = None,
        price: Optional[float] = None,
        status: str = "Pending",
        notes: str = "",
    ) -> CreatedOrder:
        customer_name = (customer_name or "").strip()
        if not customer_name:
            raise ValidationError("customerName is required")
        try:
            qty = int(quantity)
        except (TypeError, ValueError):
            raise ValidationError("quantity must be a whole number >= 1")
        if qty < 1:
            raise ValidationError("quantity must be a whole number >= 1")

        item = await self.resolve_product(product, product_id, product_sku)
        unit_price = item.price if price is None else float(price)
        if unit_price < 0:
            raise ValidationError("price must be a non-negative number")

        now = datetime.fromtimestamp(self._clock(), timezone.utc)
        doc = {
            "customerName": customer_name,
            "product": item.name,
            "productId": item.id,
            "quantity": qty,
            "price": unit_price,
            "status": normalize_status(status),
            "notes": notes,
            "date": now.date().isoformat(),
            "createdAt": now.isoformat(),
            "orderNumber": await self.next_order_number(),
        }
        order_id = await self._store.create(COLLECTION, doc)
        order = Order.from_doc({**doc, "id": order_id})

        adjustments = [await self._decrement(item, qty)]
        if item.packaging_id:
            try:
                packaging = await self._inventory.get_item(item.packaging_id)
            except NotFoundError:
                logger.warning("Packaging %s of %s is missing; skipping decrement",
                               item.packaging_id, item.name)
            else:
                adjustments.append(await self._decrement(packaging, qty))

        logger.info("Created order %s for %s (%s x%d)",
                    order.order_number, customer_name, item.name, qty)
        return CreatedOrder(order=order, adjustments=adjustments)

    async def update_status(self, reference: str, status: str) -> Order:
        order = await self.find(reference)
        new_status = normalize_status(status)
        await self._store.update(COLLECTION, order.id, {"status": new_status})
        return Order.from_doc({
            "id": order.id, "customerName": order.customer_name, "product": order.product,
            "quantity": order.quantity, "price": order.price, "status": new_status,
            "orderNumber": order.order_number, "createdAt": order.created_at, "date": order.date,
        })

    async def delete_order(self, reference: str) -> Order:
        order = await self.find(reference)
        await self._store.delete(COLLECTION, order.id)
        logger.info("Deleted order %s", order.reference)
        return order

    async def _decrement(self, item: InventoryItem, qty: int) -> StockAdjustment:
        _, new_stock = await self._inventory.adjust_stock(item.id, -qty)
        return StockAdjustment(id=item.id, name=item.name, new_stock=new_stock)
