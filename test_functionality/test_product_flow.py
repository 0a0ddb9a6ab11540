"""Multi-turn product creation with material and packaging choices."""
import pytest

from application.intents.product_flow import MISSING_PRICE, split_terms
from domain.models import PendingChoiceType, ProductFlowState

CREATE = "create product Night Tee price 25 qty 10 using materials dtf packaging mailer"


@pytest.mark.asyncio
async def test_product_flow_asks_for_material_then_packaging(assistant, factory, ctx):
    first = await assistant.handle(ctx, CREATE)

    assert first.text.startswith('Multiple materials match "dtf". Please choose:')
    assert first.awaiting == "choice"
    session = await factory.sessions.get(ctx.client_id)
    assert session.pending_choice.type is PendingChoiceType.MATERIAL_FOR_PRODUCT
    assert session.pending_product.name == "Night Tee"

    second = await assistant.handle(ctx, "1")

    assert second.text.startswith('Multiple packaging items match "mailer". Please choose:')
    session = await factory.sessions.get(ctx.client_id)
    assert session.pending_choice.type is PendingChoiceType.PACKAGING_FOR_PRODUCT
    assert session.pending_product.material_ids == ["inv-dtf"]
    assert session.pending_product.state is ProductFlowState.AWAITING_PACKAGING

    third = await assistant.handle(ctx, "SKU PKG-MAILER-6X9")

    assert third.executed
    assert third.text == (
        '✅ Created product "Night Tee" (SKU NIGHT-TEE) qty 10 at $25.00 '
        "(1 material(s), packaging attached)."
    )
    product = await factory.inventory.find_by_sku("NIGHT-TEE")
    assert product.category == "Products"
    assert product.materials == ("inv-dtf",)
    assert product.packaging_id == "inv-mailer-s"

    session = await factory.sessions.get(ctx.client_id)
    assert session.pending_choice is None
    assert session.pending_product is None


@pytest.mark.asyncio
async def test_cancel_mid_flow_drops_draft(assistant, factory, ctx):
    await assistant.handle(ctx, CREATE)
    reply = await assistant.handle(ctx, "cancel")

    session = await factory.sessions.get(ctx.client_id)
    assert reply.text == "Cancelled. Nothing changed."
    assert session.pending_product is None
    assert await factory.inventory.find_by_sku("NIGHT-TEE") is None


@pytest.mark.asyncio
async def test_unambiguous_terms_create_immediately(assistant, factory, ctx):
    reply = await assistant.handle(
        ctx, "create product Mug Set price 30 qty 4 using materials transfer packaging box",
    )

    assert reply.executed
    product = await factory.inventory.find_by_sku("MUG-SET")
    assert product.materials == ("inv-dtf",)
    assert product.packaging_id == "inv-box"


@pytest.mark.asyncio
async def test_missing_price_is_reported(assistant, factory, ctx):
    reply = await assistant.handle(ctx, "create product Night Tee using materials ink")

    assert reply.text == MISSING_PRICE
    assert not reply.executed
    session = await factory.sessions.get(ctx.client_id)
    assert session is None or session.pending_product is None


def test_split_terms():
    assert split_terms("dtf film, black shirt and ink") == ["dtf film", "black shirt", "ink"]
    assert split_terms("") == []
