"""ActionExecutor: validation, single mutation, typed result envelope."""
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from application.services.action_executor import ActionExecutor, build_action
from application.services.inventory import InventoryService
from application.services.orders import OrderService
from application.services.session_store import SessionStore
from domain.exceptions import RepositoryError
from domain.models import ActionType


@pytest.fixture
def inventory(store, clock) -> InventoryService:
    return InventoryService(store, sku_suffix=lambda: "TEST", clock=clock)


@pytest.fixture
def sessions(kv, clock) -> SessionStore:
    return SessionStore(kv, clock=clock)


@pytest.fixture
def executor(store, inventory, sessions, clock) -> ActionExecutor:
    return ActionExecutor(inventory, OrderService(store, inventory, clock=clock), sessions)


def test_build_action_fills_endpoint():
    action = build_action(ActionType.DELETE_ORDER, {"id": "ord-1"})
    assert (action.endpoint, action.method) == ("/orders/ord-1", "DELETE")
    assert action.to_dict()["type"] == "delete_order"


@pytest.mark.asyncio
async def test_invalid_payload_is_rejected_without_mutation(executor, inventory):
    result = await executor.execute(build_action(ActionType.INCREMENT_INVENTORY_STOCK, {"delta": 4}))

    assert not result.success
    assert result.message.startswith("❌ Invalid increment_inventory_stock request (id:")
    assert (await inventory.get_item("inv-mug")).stock == 40


@pytest.mark.asyncio
async def test_negative_increment_clamps_at_zero(executor):
    result = await executor.execute(build_action(
        ActionType.INCREMENT_INVENTORY_STOCK, {"id": "inv-tee-l", "delta": -10},
    ))
    assert result.success
    assert result.message == "✅ Added -10 to APP-BTS-L. New stock: 0"
    assert result.data["newStock"] == 0


@pytest.mark.asyncio
async def test_unknown_item_becomes_error_result(executor):
    result = await executor.execute(build_action(
        ActionType.UPDATE_INVENTORY_STOCK, {"id": "nope", "stock": 3},
    ))
    assert not result.success
    assert result.message == "❌ inventory item 'nope' not found"


@pytest.mark.asyncio
async def test_create_inventory_reports_defaults_and_remembers_item(executor, sessions):
    result = await executor.execute(
        build_action(ActionType.CREATE_INVENTORY, {"name": "Black Hoodie", "stock": 50}),
        client_id="tab-1",
    )

    assert result.message == (
        "✅ Created inventory item: Black Hoodie (APP-BLACK-HOODIE-TEST) with 50 units "
        "(Defaults applied: SKU APP-BLACK-HOODIE-TEST, $35.00, category Apparel, threshold 5)"
    )
    session = await sessions.get("tab-1")
    assert session.last_inventory.sku == "APP-BLACK-HOODIE-TEST"


@pytest.mark.asyncio
async def test_explicit_sku_collision_gets_counter(executor):
    result = await executor.execute(build_action(
        ActionType.CREATE_INVENTORY, {"name": "Black T-Shirt M v2", "sku": "app-bts-m", "price": 20},
    ))
    assert result.data["sku"] == "APP-BTS-M-001"
    assert "sku" not in result.data["defaults"]


@pytest.mark.asyncio
async def test_bulk_import_skips_invalid_rows(executor):
    result = await executor.execute(build_action(ActionType.BULK_IMPORT_INVENTORY, {
        "items": [{"name": "Holo sticker", "stock": 3}, {"name": "", "stock": 1}],
    }))

    assert result.success
    assert result.message == "✅ Imported 1 item(s); skipped 1."
    assert result.data["skipped"][0]["row"] == 2


@pytest.mark.asyncio
async def test_create_material_and_packing(executor, inventory):
    material = await executor.execute(build_action(
        ActionType.CREATE_MATERIAL, {"name": "White Vinyl", "stock": 15, "unit": "sheet"},
    ))
    packing = await executor.execute(build_action(
        ActionType.CREATE_PACKING_MATERIAL,
        {"name": "Bubble Mailer", "dimensions": {"length": 6, "width": 9, "unit": "in"}},
    ))

    assert material.message == "✅ Added material: White Vinyl (WHITE-VINYL) with 15 units"
    assert (await inventory.get_item(material.data["id"])).category == "Materials"
    assert packing.message == "✅ Added packing material: Bubble Mailer (PKG-BUBBLE-MAILER) 6x9 in with 0 units"


@pytest.mark.asyncio
async def test_create_product_validates_links(executor):
    bad = await executor.execute(build_action(ActionType.CREATE_PRODUCT, {
        "name": "Tee Bundle", "price": 30, "materialIds": ["inv-mug"],
    }))
    assert bad.message == "❌ One or more material IDs are invalid"

    bad_pkg = await executor.execute(build_action(ActionType.CREATE_PRODUCT, {
        "name": "Tee Bundle", "price": 30, "packagingId": "inv-dtf",
    }))
    assert bad_pkg.message == "❌ Invalid packaging item"

    no_price = await executor.execute(build_action(ActionType.CREATE_PRODUCT, {"name": "Tee Bundle"}))
    assert no_price.message.startswith("❌ Price is missing")


@pytest.mark.asyncio
async def test_create_product_accepts_comma_separated_ids(executor, inventory):
    result = await executor.execute(build_action(ActionType.CREATE_PRODUCT, {
        "name": "Tee Bundle", "price": 30, "quantity": 2, "materialIds": "inv-dtf, inv-dtf-gloss",
    }))
    assert result.success
    assert (await inventory.get_item(result.data["id"])).materials == ("inv-dtf", "inv-dtf-gloss")


@pytest.mark.asyncio
async def test_ambiguous_order_product_lists_candidates(executor):
    result = await executor.execute(build_action(ActionType.CREATE_ORDER, {
        "customerName": "Ada", "product": "Black T-Shirt", "quantity": 1,
    }))

    assert not result.success
    assert result.message == (
        '❌ Multiple items match "Black T-Shirt": Black T-Shirt M (APP-BTS-M), '
        "Black T-Shirt L (APP-BTS-L). Please specify the SKU."
    )
    assert [c["id"] for c in result.data["candidates"]] == ["inv-tee-m", "inv-tee-l"]


@pytest.mark.asyncio
async def test_order_quantity_must_be_positive(executor):
    result = await executor.execute(build_action(ActionType.CREATE_ORDER, {
        "customerName": "Ada", "productSku": "DRK-MUG-11", "quantity": 0,
    }))
    assert result.message.startswith("❌ Invalid create_order request (quantity:")


@pytest.mark.asyncio
async def test_unknown_order_status(executor):
    result = await executor.execute(build_action(
        ActionType.UPDATE_ORDER_STATUS, {"id": "ORD-20231114-0001", "status": "lost"},
    ))
    assert result.message == (
        "❌ Invalid status 'lost'. Use one of: Pending, Processing, Shipped, Delivered, Cancelled"
    )


@pytest.mark.asyncio
async def test_generated_sku_collision_retries_with_numeric_suffix(inventory, store):
    await store.create("inventory", {"id": "inv-old-hoodie", "name": "Black Hoodie (old)",
                                     "sku": "APP-BLACK-HOODIE-TEST", "stock": 1})

    first = await inventory.create_item("Black Hoodie", stock=4)
    second = await inventory.create_item("Black Hoodie", stock=2)

    assert first.item.sku == "APP-BLACK-HOODIE-TEST-001"
    assert first.defaults["sku"] == "APP-BLACK-HOODIE-TEST-001"
    assert second.item.sku == "APP-BLACK-HOODIE-TEST-002"


@pytest.mark.asyncio
async def test_session_write_failure_does_not_escape(store, inventory, clock):
    broken_kv = SimpleNamespace(
        get=AsyncMock(return_value=None),
        set=AsyncMock(side_effect=RepositoryError("kv store unavailable")),
        delete=AsyncMock(),
    )
    executor = ActionExecutor(inventory, OrderService(store, inventory, clock=clock),
                              SessionStore(broken_kv, clock=clock))

    result = await executor.execute(
        build_action(ActionType.INCREMENT_INVENTORY_STOCK, {"id": "inv-mug", "delta": 2}),
        client_id="tab-1",
    )

    assert result.success
    assert (await inventory.get_item("inv-mug")).stock == 42
    broken_kv.set.assert_awaited_once()
