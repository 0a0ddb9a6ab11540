"""
domain.models - Value objects for the assistant pipeline.

Immutable (or nearly immutable) data containers with no dependencies on
infrastructure (no LangChain, no SQLite, no FastAPI).

Serialized forms use the camelCase keys of the persisted session layout
and the REST envelope so documents written by other clients stay readable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


def to_number(value: Any, default: float = 0) -> float:
    """Coerce loosely-typed document values to a number."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number or number in (float("inf"), float("-inf")):
        return default
    return number


# ---------------------------------------------------------------------------
# External entities (owned by the document store)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InventoryItem:
    """Read-only view of an inventory document."""
    id: str
    name: str
    sku: str = ""
    stock: int = 0
    price: float = 0.0
    threshold: int = 0
    category: str = ""
    materials: tuple[str, ...] = ()
    packaging_id: str = ""
    dimensions: str = ""

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> InventoryItem:
        return cls(
            id=str(doc.get("id", "")),
            name=str(doc.get("name") or ""),
            sku=str(doc.get("sku") or ""),
            stock=int(to_number(doc.get("stock"))),
            price=to_number(doc.get("price")),
            threshold=int(to_number(doc.get("threshold"))),
            category=str(doc.get("category") or ""),
            materials=tuple(str(m) for m in doc.get("materials") or ()),
            packaging_id=str(doc.get("packagingId") or ""),
            dimensions=str(doc.get("dimensions") or ""),
        )

    @property
    def label(self) -> str:
        return self.sku or self.name

    def is_material(self) -> bool:
        return self.category.lower().startswith("mater")

    def is_packing(self) -> bool:
        return self.category.lower().startswith("pack")


@dataclass(frozen=True)
class Order:
    """Read-only view of an order document."""
    id: str
    customer_name: str
    product: str
    quantity: int = 1
    price: float = 0.0
    status: str = "Pending"
    order_number: str = ""
    created_at: str = ""
    date: str = ""

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> Order:
        return cls(
            id=str(doc.get("id", "")),
            customer_name=str(doc.get("customerName") or doc.get("customer") or "N/A"),
            product=str(doc.get("product") or ""),
            quantity=int(to_number(doc.get("quantity"), 1)),
            price=to_number(doc.get("price") if doc.get("price") is not None else doc.get("total")),
            status=str(doc.get("status") or ""),
            order_number=str(doc.get("orderNumber") or ""),
            created_at=str(doc.get("createdAt") or ""),
            date=str(doc.get("date") or ""),
        )

    @property
    def reference(self) -> str:
        return self.order_number or self.id


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

class PendingChoiceType(str, Enum):
    RESTOCK_BY_NAME = "restock_by_name"
    MATERIAL_FOR_PRODUCT = "material_for_product"
    PACKAGING_FOR_PRODUCT = "packaging_for_product"


@dataclass(frozen=True)
class Candidate:
    """One entry of a numbered disambiguation list."""
    id: str
    name: str
    sku: str = ""
    stock: int = 0

    @classmethod
    def from_item(cls, item: InventoryItem) -> Candidate:
        return cls(id=item.id, name=item.name, sku=item.sku, stock=item.stock)

    @property
    def label(self) -> str:
        return f"{self.name} ({self.sku or 'N/A'}) — stock {self.stock}"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "sku": self.sku, "stock": self.stock}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Candidate:
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            sku=str(data.get("sku") or ""),
            stock=int(to_number(data.get("stock"))),
        )


@dataclass(frozen=True)
class PendingChoice:
    """Ambiguous reference awaiting the user's next turn.

    candidates is never empty.
    """
    type: PendingChoiceType
    term: str
    candidates: tuple[Candidate, ...]
    delta: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.candidates:
            raise ValueError("PendingChoice requires at least one candidate")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type.value,
            "term": self.term,
            "candidates": [c.to_dict() for c in self.candidates],
        }
        if self.delta is not None:
            data["delta"] = self.delta
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingChoice:
        delta = data.get("delta")
        return cls(
            type=PendingChoiceType(data["type"]),
            term=str(data.get("term") or ""),
            candidates=tuple(Candidate.from_dict(c) for c in data.get("candidates") or ()),
            delta=int(delta) if delta is not None else None,
        )


class ProductFlowState(str, Enum):
    AWAITING_MATERIALS = "awaiting_materials"
    AWAITING_PACKAGING = "awaiting_packaging"
    READY = "ready"


@dataclass
class ProductDraft:
    """Product creation in progress (persisted as pendingCreateProduct)."""
    name: str
    price: Optional[float] = None
    quantity: int = 0
    materials_terms: list[str] = field(default_factory=list)
    packaging_term: str = ""
    image_url: Optional[str] = None
    material_ids: list[str] = field(default_factory=list)
    next_material: int = 0
    packaging_id: str = ""
    state: ProductFlowState = ProductFlowState.AWAITING_MATERIALS

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "materialsTerms": list(self.materials_terms),
            "packagingTerm": self.packaging_term,
            "imageUrl": self.image_url,
            "materialIds": list(self.material_ids),
            "nextMaterial": self.next_material,
            "packagingId": self.packaging_id,
            "state": self.state.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProductDraft:
        price = data.get("price")
        return cls(
            name=str(data.get("name") or "New Product"),
            price=float(price) if price is not None else None,
            quantity=int(to_number(data.get("quantity"))),
            materials_terms=[str(t) for t in data.get("materialsTerms") or ()],
            packaging_term=str(data.get("packagingTerm") or ""),
            image_url=data.get("imageUrl"),
            material_ids=[str(i) for i in data.get("materialIds") or ()],
            next_material=int(to_number(data.get("nextMaterial"))),
            packaging_id=str(data.get("packagingId") or ""),
            state=ProductFlowState(data.get("state") or ProductFlowState.AWAITING_MATERIALS.value),
        )


@dataclass(frozen=True)
class ItemRef:
    """The most recently touched inventory item (lastInventory)."""
    id: str
    name: str
    sku: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "sku": self.sku}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ItemRef:
        return cls(id=str(data.get("id", "")), name=str(data.get("name") or ""),
                   sku=str(data.get("sku") or ""))

    @property
    def label(self) -> str:
        return self.sku or self.name


@dataclass(frozen=True)
class DesignRef:
    """The most recent design image (lastDesign)."""
    url: str
    subject: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "subject": self.subject}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DesignRef:
        return cls(url=str(data.get("url") or ""), subject=str(data.get("subject") or ""))


# Session field name -> persisted key
SESSION_KEYS: dict[str, str] = {
    "pending_choice": "pendingChoice",
    "pending_product": "pendingCreateProduct",
    "last_inventory": "lastInventory",
    "last_design": "lastDesign",
}

PENDING_KEYS = ("pending_choice", "pending_product")


@dataclass(frozen=True)
class Session:
    """Conversational state for one client.

    expires_at / updated_at are epoch milliseconds. version counts writes
    and is informational: concurrent writers still race (last write wins).
    """
    client_id: str
    expires_at: int
    updated_at: int
    pending_choice: Optional[PendingChoice] = None
    pending_product: Optional[ProductDraft] = None
    last_inventory: Optional[ItemRef] = None
    last_design: Optional[DesignRef] = None
    version: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "clientId": self.client_id,
            "expiresAt": self.expires_at,
            "updatedAt": self.updated_at,
            "version": self.version,
        }
        if self.pending_choice is not None:
            data["pendingChoice"] = self.pending_choice.to_dict()
        if self.pending_product is not None:
            data["pendingCreateProduct"] = self.pending_product.to_dict()
        if self.last_inventory is not None:
            data["lastInventory"] = self.last_inventory.to_dict()
        if self.last_design is not None:
            data["lastDesign"] = self.last_design.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        choice = data.get("pendingChoice")
        product = data.get("pendingCreateProduct")
        last_inv = data.get("lastInventory")
        last_design = data.get("lastDesign")
        return cls(
            client_id=str(data.get("clientId", "")),
            expires_at=int(data.get("expiresAt") or 0),
            updated_at=int(data.get("updatedAt") or 0),
            pending_choice=PendingChoice.from_dict(choice) if choice else None,
            pending_product=ProductDraft.from_dict(product) if product else None,
            last_inventory=ItemRef.from_dict(last_inv) if last_inv else None,
            last_design=DesignRef.from_dict(last_design) if last_design else None,
            version=int(data.get("version") or 0),
        )


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class ActionType(str, Enum):
    INCREMENT_INVENTORY_STOCK = "increment_inventory_stock"
    UPDATE_INVENTORY_STOCK = "update_inventory_stock"
    UPDATE_INVENTORY_FIELDS = "update_inventory_fields"
    CREATE_INVENTORY = "create_inventory"
    CREATE_MATERIAL = "create_material"
    CREATE_PACKING_MATERIAL = "create_packing_material"
    CREATE_PRODUCT = "create_product"
    BULK_IMPORT_INVENTORY = "bulk_import_inventory"
    DELETE_INVENTORY = "delete_inventory"
    CREATE_ORDER = "create_order"
    UPDATE_ORDER_STATUS = "update_order_status"
    DELETE_ORDER = "delete_order"


@dataclass(frozen=True)
class Action:
    """A self-describing mutation request, consumed once by the ActionExecutor."""
    type: ActionType
    payload: dict[str, Any]
    endpoint: str
    method: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "payload": dict(self.payload),
            "endpoint": self.endpoint,
            "method": self.method,
        }


@dataclass(frozen=True)
class ActionResult:
    """Typed result envelope; the executor never raises past this."""
    success: bool
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message, **self.data}


# ---------------------------------------------------------------------------
# Agent loop
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToolStep:
    """One tool invocation inside a single agent run."""
    tool: str
    outcome: dict[str, Any]
    denied: bool = False

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"tool": self.tool, "outcome": self.outcome}
        if self.denied:
            out["denied"] = True
        return out


# ---------------------------------------------------------------------------
# Guardrails
# ---------------------------------------------------------------------------

class ScopeVerdict(str, Enum):
    IN_SCOPE = "in_scope"
    OUT_OF_SCOPE = "out_of_scope"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------

class ReplySource(str, Enum):
    DIRECT = "direct"
    GUARDRAIL = "guardrail"
    LOCAL_FALLBACK = "local_fallback"
    OFFLINE = "offline"


@dataclass(frozen=True)
class AssistantReply:
    """Response envelope: text plus where it came from.

    source is a ReplySource value or the name of the model provider
    that produced the answer.
    """
    text: str
    source: str = ReplySource.DIRECT.value
    data: Optional[dict[str, Any]] = None
    action: Optional[Action] = None
    executed: bool = False
    awaiting: Optional[str] = None
    options: Optional[list[dict[str, str]]] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "text": self.text,
            "executed": self.executed,
            "source": self.source,
        }
        if self.data is not None:
            out["data"] = self.data
        if self.action is not None:
            out["action"] = self.action.to_dict()
        if self.awaiting is not None:
            out["awaiting"] = self.awaiting
        if self.options is not None:
            out["options"] = self.options
        return out
