"""Numbered choice lists and their resolution on the next turn."""
import pytest

from application.intents.choices import REPROMPT_HEADER
from application.intents.resolver import _CANCEL, CANCEL_REPLY, select_candidate, sku_forms
from domain.models import Candidate, PendingChoiceType

AMBIGUOUS = "add 10 black t-shirts"


async def _open_choice(assistant, ctx):
    reply = await assistant.handle(ctx, AMBIGUOUS)
    assert reply.awaiting == "choice"
    return reply


@pytest.mark.asyncio
async def test_ambiguous_restock_lists_candidates(assistant, factory, ctx):
    reply = await _open_choice(assistant, ctx)

    assert reply.text == (
        'I found multiple items matching "black t-shirts". Please choose:\n'
        "1. Black T-Shirt M (APP-BTS-M) — stock 24\n"
        "2. Black T-Shirt L (APP-BTS-L) — stock 3"
    )
    assert [o["send"] for o in reply.options] == ["1", "2"]
    assert not reply.executed

    session = await factory.sessions.get(ctx.client_id)
    assert session.pending_choice.type is PendingChoiceType.RESTOCK_BY_NAME
    assert session.pending_choice.delta == 10


@pytest.mark.asyncio
async def test_pick_by_number_applies_restock(assistant, factory, ctx):
    await _open_choice(assistant, ctx)

    reply = await assistant.handle(ctx, "2")

    assert reply.executed
    assert reply.text == "✅ Added +10 to APP-BTS-L. New stock: 13"
    session = await factory.sessions.get(ctx.client_id)
    assert session.pending_choice is None
    assert session.last_inventory.id == "inv-tee-l"


@pytest.mark.asyncio
async def test_pick_by_sku(assistant, factory, ctx):
    await _open_choice(assistant, ctx)

    reply = await assistant.handle(ctx, "SKU APP-BTS-M")

    assert reply.text == "✅ Added +10 to APP-BTS-M. New stock: 34"


@pytest.mark.asyncio
async def test_cancel_clears_choice_without_changes(assistant, factory, ctx):
    await _open_choice(assistant, ctx)

    reply = await assistant.handle(ctx, "never mind")

    assert reply.text == CANCEL_REPLY
    assert (await factory.inventory.get_item("inv-tee-l")).stock == 3
    assert (await factory.sessions.get(ctx.client_id)).pending_choice is None


@pytest.mark.asyncio
async def test_unrecognized_reply_reprompts_and_keeps_state(assistant, factory, ctx):
    await _open_choice(assistant, ctx)

    reply = await assistant.handle(ctx, "7")

    assert reply.text.startswith(REPROMPT_HEADER)
    assert reply.awaiting == "choice"
    assert (await factory.sessions.get(ctx.client_id)).pending_choice is not None

    # Still answerable afterwards
    done = await assistant.handle(ctx, "1")
    assert done.executed


@pytest.mark.asyncio
async def test_choice_is_scoped_to_client(assistant, ctx):
    from application.context import SessionContext

    await _open_choice(assistant, ctx)
    other = await assistant.handle(SessionContext(client_id="tab-2"), "2")

    assert other.awaiting is None
    assert not other.executed


@pytest.mark.asyncio
async def test_expired_choice_is_forgotten(assistant, factory, clock, ctx):
    await _open_choice(assistant, ctx)
    clock.advance(601)

    reply = await assistant.handle(ctx, "2")

    assert not reply.executed
    assert (await factory.inventory.get_item("inv-tee-l")).stock == 3


CANDIDATES = (
    Candidate(id="a", name="Poly Mailer 10x13", sku="PKG-MAILER-10X13", stock=2),
    Candidate(id="b", name="Poly Mailer 6x9", sku="PKG-MAILER-6X9", stock=30),
)


@pytest.mark.parametrize("text, index", [
    ("1", 0),
    ("option 2", 1),
    ("sku pkg-mailer-6x9", 1),
    ("6x9", 1),
    ("poly", 0),
    ("5", None),
    ("bubble wrap", None),
])
def test_select_candidate(text, index):
    assert select_candidate(text, CANDIDATES) == index


def test_sku_forms():
    assert sku_forms("sku APP-TEE-1") == ("SKUAPP-TEE-1", "APP-TEE-1")
    assert sku_forms("SKU-12") == ("SKU-12", "12")


@pytest.mark.asyncio
async def test_names_starting_with_sku_are_not_skus(assistant, store, ctx):
    await store.create("inventory", {"id": "inv-skull-a", "name": "Skull Mug A", "sku": "DRK-SKL-A",
                                     "stock": 4, "category": "Drinkware"})
    await store.create("inventory", {"id": "inv-skull-b", "name": "Skull Mug B", "sku": "DRK-SKL-B",
                                     "stock": 6, "category": "Drinkware"})

    first = await assistant.handle(ctx, "add 10 skull mugs")
    assert first.awaiting == "choice"
    assert [o["label"] for o in first.options] == [
        "Skull Mug A (DRK-SKL-A) — stock 4",
        "Skull Mug B (DRK-SKL-B) — stock 6",
    ]

    second = await assistant.handle(ctx, "skull mug b")
    assert second.text == "✅ Added +10 to DRK-SKL-B. New stock: 16"


@pytest.mark.parametrize("text", ["the desktop one", "nonstop mug", "abortive"])
def test_cancel_words_need_word_boundaries(text):
    assert not _CANCEL.search(text)


@pytest.mark.parametrize("text", ["cancel", "never mind", "Nevermind please", "stop"])
def test_cancel_phrases(text):
    assert _CANCEL.search(text)
