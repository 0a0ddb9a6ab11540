"""Local intent rules routed through AssistantService (no model configured)."""
import re

import pytest

from application.context import SessionContext
from domain.models import ReplySource


async def _stock(factory, item_id: str) -> int:
    return (await factory.inventory.get_item(item_id)).stock


@pytest.mark.asyncio
async def test_inventory_summary_uses_live_numbers(assistant, ctx):
    reply = await assistant.handle(ctx, "inventory summary")

    assert reply.source == ReplySource.DIRECT.value
    assert reply.text.startswith("📦 **Inventory Summary:**")
    assert reply.data["totalSkus"] == 8
    assert reply.data["totalUnits"] == 269
    assert reply.data["lowStock"] == 2
    assert reply.data["outOfStock"] == 1


@pytest.mark.asyncio
async def test_orders_overview(assistant, ctx):
    reply = await assistant.handle(ctx, "order status")

    assert "Orders Overview" in reply.text
    assert reply.data["pending"] == 1
    assert reply.data["delivered"] == 1
    assert reply.data["topPending"][0]["orderNumber"] == "ORD-20231114-0001"


@pytest.mark.asyncio
async def test_stock_query_strips_plural_and_tail(assistant, ctx):
    reply = await assistant.handle(ctx, "how many mugs do we have?")

    assert reply.text.startswith('📦 We have 40 units matching "mugs"')
    assert reply.data["total"] == 40


@pytest.mark.asyncio
async def test_restock_by_sku(assistant, factory, ctx):
    reply = await assistant.handle(ctx, "add 5 to SKU APP-BTS-M")

    assert reply.executed
    assert reply.text == "✅ Added +5 to APP-BTS-M. New stock: 29"
    assert reply.action.method == "PATCH"
    assert reply.action.endpoint == "/inventory/inv-tee-m/stock"
    assert await _stock(factory, "inv-tee-m") == 29


@pytest.mark.asyncio
async def test_restock_unknown_sku(assistant, ctx):
    reply = await assistant.handle(ctx, "add 5 to SKU NOPE-1")

    assert not reply.executed
    assert "couldn't find SKU" in reply.text


@pytest.mark.asyncio
async def test_set_stock(assistant, factory, ctx):
    reply = await assistant.handle(ctx, "set stock for SKU DRK-MUG-11 to 12")

    assert reply.text == "✅ Updated DRK-MUG-11 stock to 12"
    assert await _stock(factory, "inv-mug") == 12


@pytest.mark.asyncio
async def test_restock_by_unique_name(assistant, factory, ctx):
    reply = await assistant.handle(ctx, "restock 6 ceramic mug")

    assert reply.text == "✅ Added +6 to DRK-MUG-11. New stock: 46"


@pytest.mark.asyncio
async def test_generic_add_creates_item_with_defaults(assistant, ctx):
    reply = await assistant.handle(ctx, "add 12 new Holo Keychain price 4")

    assert reply.executed
    assert re.match(
        r"✅ Created inventory item: Holo Keychain \(GEN-HOLO-KEYCHAIN-[A-Z0-9]{4}\) with 12 units "
        r"\(Defaults applied: SKU GEN-HOLO-KEYCHAIN-[A-Z0-9]{4}, category General, threshold 3\)$",
        reply.text,
    )
    assert set(reply.data["defaults"]) == {"sku", "category", "threshold"}


@pytest.mark.asyncio
async def test_follow_up_edits_last_touched_item(assistant, factory, ctx):
    created = await assistant.handle(ctx, "add 12 new Holo Keychain price 4")
    item_id = created.data["id"]

    reply = await assistant.handle(ctx, "set price to 6")

    assert reply.executed
    assert reply.text.startswith("✅ Updated price for GEN-HOLO-KEYCHAIN-")
    assert (await factory.inventory.get_item(item_id)).price == 6.0


@pytest.mark.asyncio
async def test_follow_up_without_last_item_is_not_handled_locally(assistant, ctx):
    reply = await assistant.handle(ctx, "set price to 6")
    assert reply.source == ReplySource.OFFLINE.value


@pytest.mark.asyncio
async def test_generic_add_merges_with_existing_name(assistant, factory, ctx):
    reply = await assistant.handle(ctx, "add Ceramic Mug 11oz")

    assert reply.text == "✅ Added +1 to DRK-MUG-11. New stock: 41 (Merged with existing item DRK-MUG-11)"
    assert await _stock(factory, "inv-mug") == 41


@pytest.mark.asyncio
async def test_add_packing_material_with_dimensions(assistant, factory, ctx):
    reply = await assistant.handle(ctx, "add packing material Kraft Box dimensions 10x10x6 in stock 40")

    assert reply.executed
    assert reply.text == "✅ Added packing material: Kraft Box (PKG-KRAFT-BOX) 10x10x6 in with 40 units"
    alerts = await factory.inventory.packing_alerts()
    assert alerts["counts"]["totalPacking"] == 4


@pytest.mark.asyncio
async def test_delete_item_needs_confirmation(assistant, factory, ctx):
    first = await assistant.handle(ctx, "delete SKU DRK-MUG-11")

    assert not first.executed
    assert first.awaiting == "confirmation"
    assert first.action.method == "DELETE"
    assert await _stock(factory, "inv-mug") == 40

    second = await assistant.handle(ctx, "delete SKU DRK-MUG-11 confirm")

    assert second.executed
    assert second.text == "✅ Deleted inventory item: Ceramic Mug 11oz (DRK-MUG-11)"
    assert await factory.inventory.find_by_sku("DRK-MUG-11") is None


@pytest.mark.asyncio
async def test_mark_order_status(assistant, factory, ctx):
    reply = await assistant.handle(ctx, "mark order ORD-20231114-0001 as shipped")

    assert reply.text == "✅ Order ORD-20231114-0001 marked as Shipped"
    assert (await factory.orders.find("ord-1")).status == "Shipped"


@pytest.mark.asyncio
async def test_unknown_order(assistant, ctx):
    reply = await assistant.handle(ctx, "mark order ORD-9 as shipped")
    assert reply.text == "❌ I couldn't find order ORD-9."


@pytest.mark.asyncio
async def test_create_order_decrements_stock(assistant, factory, ctx):
    reply = await assistant.handle(ctx, "create order for Grace Hopper product Black T-Shirt M qty 3")

    assert reply.executed
    assert reply.text == "✅ Created order ORD-20231114-0003 for Grace Hopper (3 × Black T-Shirt M)"
    assert await _stock(factory, "inv-tee-m") == 21


@pytest.mark.asyncio
async def test_delete_order_needs_confirmation(assistant, factory, ctx):
    first = await assistant.handle(ctx, "delete order ORD-20231114-0002")
    assert first.awaiting == "confirmation"
    assert len(await factory.orders.orders()) == 2

    second = await assistant.handle(ctx, "delete order ORD-20231114-0002 execute")
    assert second.text == "✅ Deleted order: ORD-20231114-0002"
    assert len(await factory.orders.orders()) == 1


@pytest.mark.asyncio
async def test_attach_image_to_sku_remembers_design(assistant, factory):
    ctx = SessionContext(client_id="tab-img")
    reply = await assistant.handle(ctx, "attach image https://cdn.example.com/tee.png for SKU APP-BTS-M")

    assert reply.text == "✅ Attached image to APP-BTS-M."
    session = await factory.sessions.get("tab-img")
    assert session.last_design.url == "https://cdn.example.com/tee.png"
    assert session.last_design.subject == "Black T-Shirt M"


@pytest.mark.asyncio
async def test_ninjatransfer_link_uses_last_touched_item(assistant, store):
    ctx = SessionContext(client_id="tab-ninja")
    await assistant.handle(ctx, "add 5 to SKU DRK-MUG-11")

    reply = await assistant.handle(ctx, "add ninjatransfer link https://ninja.example.com/mug")

    assert reply.text == "🔗 Added NinjaTransfer link to DRK-MUG-11."
    assert reply.executed is True
    assert (await store.get("inventory", "inv-mug"))["ninjatransferLink"] == "https://ninja.example.com/mug"


@pytest.mark.asyncio
async def test_ninjatransfer_link_needs_a_target(assistant, ctx):
    reply = await assistant.handle(ctx, "add ninjatransfer link https://ninja.example.com/mug")
    assert reply.text.startswith("❌ Please specify which item to attach the NinjaTransfer link to")


@pytest.mark.asyncio
async def test_update_order_status_phrase_is_not_the_overview(assistant, factory, ctx):
    reply = await assistant.handle(ctx, "update order status for ORD-20231114-0001 to delivered")

    assert reply.text == "✅ Order ORD-20231114-0001 marked as Delivered"
    assert (await factory.orders.find("ord-1")).status == "Delivered"
