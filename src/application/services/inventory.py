"""
application.services.inventory - Inventory reads and mutations.

All access to the `inventory` collection goes through this service:
lookups by SKU / name, the live summary, item creation with heuristic
defaults, stock adjustments, packing-material alerts and bulk import.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from application import heuristics
from domain.exceptions import NotFoundError, ValidationError
from domain.models import InventoryItem, to_number
from domain.ports import DocumentStorePort

logger = logging.getLogger(__name__)

COLLECTION = "inventory"
MATCH_LIMIT = 7
PRODUCT_CATEGORY = "Products"


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InventorySummary:
    total_skus: int
    total_units: int
    low_stock: int
    out_of_stock: int
    inventory_value: float
    top_low: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalSkus": self.total_skus,
            "totalUnits": self.total_units,
            "lowStock": self.low_stock,
            "outOfStock": self.out_of_stock,
            "inventoryValue": round(self.inventory_value, 2),
            "topLow": self.top_low,
        }

    def render(self) -> str:
        text = (
            "📦 **Inventory Summary:**\n"
            f"- **Total SKUs:** {self.total_skus}\n"
            f"- **Units in stock:** {self.total_units}\n"
            f"- **Low stock items:** {self.low_stock}\n"
            f"- **Out of stock:** {self.out_of_stock}\n"
            f"- **Total inventory value:** ${self.inventory_value:.2f}\n"
        )
        if self.top_low:
            text += "\n⚠️ **Items at or below threshold:**\n" + "\n".join(
                f"• {i['name']} ({i['sku']}) — {i['stock']} ≤ {i['threshold']}"
                for i in self.top_low
            )
        return text


@dataclass(frozen=True)
class CreatedItem:
    """A newly created item plus the fields that were filled in by heuristics."""
    item: InventoryItem
    defaults: dict[str, Any] = field(default_factory=dict)

    def defaults_note(self) -> str:
        if not self.defaults:
            return ""
        parts = []
        if "sku" in self.defaults:
            parts.append(f"SKU {self.defaults['sku']}")
        if "price" in self.defaults:
            parts.append(f"${self.defaults['price']:.2f}")
        if "category" in self.defaults:
            parts.append(f"category {self.defaults['category']}")
        if "threshold" in self.defaults:
            parts.append(f"threshold {self.defaults['threshold']}")
        return f" (Defaults applied: {', '.join(parts)})"


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class InventoryService:
    """Reads and writes inventory documents through DocumentStorePort."""

    def __init__(
        self,
        store: DocumentStorePort,
        sku_suffix: Callable[[], str] = heuristics.random_suffix,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._sku_suffix = sku_suffix
        self._clock = clock

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def items(self) -> list[InventoryItem]:
        docs = await self._store.list(COLLECTION, limit=2000)
        return [InventoryItem.from_doc(d) for d in docs]

    async def get_item(self, item_id: str) -> InventoryItem:
        doc = await self._store.get(COLLECTION, str(item_id))
        if doc is None:
            raise NotFoundError(f"inventory item '{item_id}' not found")
        return InventoryItem.from_doc(doc)

    async def find_by_sku(self, sku: str) -> Optional[InventoryItem]:
        wanted = normalize_sku(sku)
        for item in await self.items():
            if item.sku.upper() == wanted:
                return item
        return None

    async def find_by_name(self, name: str) -> Optional[InventoryItem]:
        wanted = (name or "").strip().lower()
        for item in await self.items():
            if item.name.lower() == wanted:
                return item
        return None

    async def match(
        self,
        term: str,
        predicate: Optional[Callable[[InventoryItem], bool]] = None,
        limit: Optional[int] = MATCH_LIMIT,
    ) -> list[InventoryItem]:
        """Items whose name contains term (case-insensitive)."""
        t = (term or "").strip().lower()
        found = [
            i for i in await self.items()
            if (predicate is None or predicate(i)) and t in i.name.lower()
        ]
        return found[:limit] if limit else found

    async def match_name_or_sku(self, term: str) -> list[InventoryItem]:
        t = (term or "").strip().lower()
        return [
            i for i in await self.items()
            if t in i.name.lower() or (i.sku and t in i.sku.lower())
        ]

    async def search(self, term: str) -> list[InventoryItem]:
        """Stock-query search across name, SKU and category."""
        t = (term or "").strip().lower()
        return [
            i for i in await self.items()
            if t in i.name.lower() or t in i.sku.lower() or t in i.category.lower()
        ]

    async def summary(self) -> InventorySummary:
        items = await self.items()
        low = [i for i in items if i.stock > 0 and i.threshold > 0 and i.stock <= i.threshold]
        at_or_below = sorted(
            (i for i in items if i.stock <= i.threshold), key=lambda i: i.stock,
        )[:5]
        return InventorySummary(
            total_skus=len(items),
            total_units=sum(i.stock for i in items),
            low_stock=len(low),
            out_of_stock=sum(1 for i in items if i.stock == 0),
            inventory_value=sum(i.stock * i.price for i in items),
            top_low=[
                {"name": i.name, "sku": i.sku, "stock": i.stock, "threshold": i.threshold}
                for i in at_or_below
            ],
        )

    async def packing_alerts(self, default_threshold: int = heuristics.DEFAULT_THRESHOLD) -> dict[str, Any]:
        """Packing-material items that are out of stock or at/below threshold."""
        docs = await self._store.list(COLLECTION, limit=2000)
        low: list[dict[str, Any]] = []
        out: list[dict[str, Any]] = []
        packing = [d for d in docs if str(d.get("category") or "").lower().startswith("pack")]
        for doc in packing:
            stock = to_number(doc.get("stock"))
            threshold = to_number(doc.get("threshold"), default_threshold) \
                if doc.get("threshold") is not None else default_threshold
            entry = {
                "id": doc["id"], "name": doc.get("name"), "sku": doc.get("sku"),
                "stock": int(stock), "threshold": int(threshold),
                "dimensions": doc.get("dimensions"),
            }
            if stock <= 0:
                out.append(entry)
            elif stock <= threshold:
                low.append(entry)
        return {
            "low": low,
            "out": out,
            "counts": {"low": len(low), "out": len(out), "totalPacking": len(packing)},
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_item(
        self,
        name: str,
        stock: int = 0,
        price: Optional[float] = None,
        category: Optional[str] = None,
        threshold: Optional[int] = None,
        sku: Optional[str] = None,
        status: str = "active",
        description: str = "",
    ) -> CreatedItem:
        """Create an item, deriving any missing price/category/threshold/SKU."""
        name = _require_name(name)
        stock = _non_negative_int(stock, "stock")
        defaults: dict[str, Any] = {}

        if category:
            category = heuristics.normalize_category(category)
        else:
            category = heuristics.guess_category(name)
            defaults["category"] = category
        if price is None:
            price = heuristics.guess_price(name)
            defaults["price"] = price
        price = _non_negative_float(price, "price")
        if threshold is None:
            threshold = heuristics.guess_threshold(stock)
            defaults["threshold"] = threshold

        existing = [i.sku for i in await self.items()]
        if sku:
            final_sku = heuristics.unique_sku(normalize_sku(sku), existing, self._clock)
        else:
            final_sku = heuristics.unique_sku(
                heuristics.guess_sku(name, category, self._sku_suffix), existing, self._clock,
            )
            defaults["sku"] = final_sku

        doc = self._new_doc(
            name=name, sku=final_sku, stock=stock, price=price, threshold=int(threshold),
            category=category, status=status, description=description,
        )
        item = await self._insert(doc)
        logger.info("Created inventory item %s (%s) defaults=%s", item.name, item.sku, sorted(defaults))
        return CreatedItem(item=item, defaults=defaults)

    async def add_material(
        self,
        name: str,
        stock: int = 0,
        price: Optional[float] = None,
        sku: Optional[str] = None,
        unit: Optional[str] = None,
    ) -> InventoryItem:
        name = _require_name(name)
        stock = _non_negative_int(stock, "stock")
        existing = [i.sku for i in await self.items()]
        base = normalize_sku(sku) if sku else heuristics.sku_from_name(name)
        doc = self._new_doc(
            name=name,
            sku=heuristics.unique_sku(base, existing, self._clock),
            stock=stock,
            price=_non_negative_float(price, "price") if price is not None else 0.0,
            threshold=heuristics.DEFAULT_THRESHOLD,
            category="Materials",
        )
        if unit:
            doc["unit"] = unit
        return await self._insert(doc)

    async def add_packing_material(
        self,
        name: str,
        dimensions: Any,
        stock: int = 0,
        price: Optional[float] = None,
        sku: Optional[str] = None,
        threshold: Optional[int] = None,
    ) -> InventoryItem:
        name = _require_name(name)
        dims = format_dimensions(dimensions)
        if not dims:
            raise ValidationError("dimensions is required")
        stock = _non_negative_int(stock, "stock")
        existing = [i.sku for i in await self.items()]
        base = normalize_sku(sku) if sku else heuristics.packing_sku_from_name(name)
        doc = self._new_doc(
            name=name,
            sku=heuristics.unique_sku(base, existing, self._clock),
            stock=stock,
            price=_non_negative_float(price, "price") if price is not None else 0.0,
            threshold=_non_negative_int(threshold, "threshold")
            if threshold is not None else heuristics.DEFAULT_THRESHOLD,
            category="Packing Materials",
        )
        doc["dimensions"] = dims
        return await self._insert(doc)

    async def create_product(
        self,
        name: str,
        price: Any,
        quantity: Any = 0,
        material_ids: Iterable[str] = (),
        packaging_id: str = "",
        sku: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> InventoryItem:
        """Create a finished product after validating its material/packaging links."""
        name = _require_name(name)
        stock = _non_negative_int(quantity, "quantity")
        if price is None:
            raise ValidationError("price is required for product creation")
        price = _non_negative_float(price, "price")

        items = await self.items()
        by_id = {i.id: i for i in items}
        wanted = list(dict.fromkeys(str(m) for m in material_ids))
        materials = [by_id[m] for m in wanted if m in by_id and by_id[m].is_material()]
        if len(materials) != len(wanted):
            raise ValidationError("One or more material IDs are invalid")
        if packaging_id:
            pkg = by_id.get(str(packaging_id))
            if pkg is None or not pkg.is_packing():
                raise ValidationError("Invalid packaging item")

        base = normalize_sku(sku) if sku else heuristics.sku_from_name(name)
        doc = self._new_doc(
            name=name,
            sku=heuristics.unique_sku(base, [i.sku for i in items], self._clock),
            stock=stock,
            price=price,
            threshold=heuristics.DEFAULT_THRESHOLD,
            category=PRODUCT_CATEGORY,
        )
        doc["materials"] = [m.id for m in materials]
        doc["packagingId"] = str(packaging_id or "")
        if image_url:
            doc["imageUrl"] = image_url
        return await self._insert(doc)

    async def adjust_stock(self, item_id: str, delta: int) -> tuple[InventoryItem, int]:
        """Add delta (may be negative) to an item's stock, clamped at 0."""
        item = await self.get_item(item_id)
        new_stock = max(0, item.stock + int(delta))
        await self._store.update(COLLECTION, item.id, {"stock": new_stock})
        return item, new_stock

    async def set_stock(self, item_id: str, stock: int) -> InventoryItem:
        item = await self.get_item(item_id)
        await self._store.update(COLLECTION, item.id, {"stock": _non_negative_int(stock, "stock")})
        return item

    async def update_fields(self, item_id: str, fields: dict[str, Any]) -> InventoryItem:
        item = await self.get_item(item_id)
        await self._store.update(COLLECTION, item.id, fields)
        return await self.get_item(item.id)

    async def delete_item(self, item_id: str) -> InventoryItem:
        item = await self.get_item(item_id)
        await self._store.delete(COLLECTION, item.id)
        logger.info("Deleted inventory item %s (%s)", item.name, item.sku)
        return item

    async def bulk_import(
        self,
        rows: list[dict[str, Any]],
        default_category: Optional[str] = None,
    ) -> dict[str, Any]:
        """Create one item per row; invalid rows are skipped and reported."""
        created: list[dict[str, Any]] = []
        skipped: list[dict[str, Any]] = []
        for index, row in enumerate(rows, start=1):
            try:
                result = await self.create_item(
                    name=row.get("name", ""),
                    stock=row.get("stock", 0) or 0,
                    price=row.get("price"),
                    category=row.get("category") or default_category,
                    threshold=row.get("threshold"),
                    sku=row.get("sku"),
                )
            except ValidationError as exc:
                skipped.append({"row": index, "name": row.get("name"), "error": str(exc)})
                continue
            created.append({"id": result.item.id, "name": result.item.name, "sku": result.item.sku})
        logger.info("Bulk import: %d created, %d skipped", len(created), len(skipped))
        return {"created": created, "skipped": skipped,
                "counts": {"created": len(created), "skipped": len(skipped)}}

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _new_doc(self, **fields: Any) -> dict[str, Any]:
        today = datetime.fromtimestamp(self._clock(), timezone.utc).date().isoformat()
        doc = {
            "status": "active",
            "description": "",
            "materials": [],
            "packagingId": "",
            "dateAdded": today,
        }
        doc.update(fields)
        return doc

    async def _insert(self, doc: dict[str, Any]) -> InventoryItem:
        doc_id = await self._store.create(COLLECTION, doc)
        return InventoryItem.from_doc({**doc, "id": doc_id})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def normalize_sku(sku: str) -> str:
    """'sku 12-ab' -> 'SKU12-AB'."""
    return "".join((sku or "").split()).upper()


def format_dimensions(dimensions: Any) -> str:
    """Accept "6x9 in" or {length, width, height?, unit?}."""
    if isinstance(dimensions, str):
        return dimensions.strip()
    if isinstance(dimensions, dict):
        parts = [str(dimensions[k]) for k in ("length", "width", "height")
                 if dimensions.get(k) is not None]
        unit = dimensions.get("unit")
        return ("x".join(parts) + (f" {unit}" if unit else "")).strip()
    return ""


def _require_name(name: Any) -> str:
    name = str(name or "").strip()
    if not name:
        raise ValidationError("name is required")
    return name


def _non_negative_int(value: Any, label: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a non-negative integer")
    if number < 0:
        raise ValidationError(f"{label} must be a non-negative integer")
    return number


def _non_negative_float(value: Any, label: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a non-negative number")
    if number < 0 or number != number:
        raise ValidationError(f"{label} must be a non-negative number")
    return number
