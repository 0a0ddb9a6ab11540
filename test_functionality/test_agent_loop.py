"""AgentExecutor: bounded tool loop, allow-list, confirmations, synthesis."""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from agent.executor import EMPTY_ANSWER, AgentExecutor
from application.services.scope_filter import FABRICATED_REPORT_REDIRECT, ScopeFilter
from conftest import ScriptedProvider
from domain.exceptions import FailureReason, ProviderError
from domain.ports import ProviderReply
from infrastructure.retrieval.context_retriever import InventoryContextRetriever


def decision(tool=None, args=None, another=False, answer=None) -> str:
    return json.dumps({
        "useTool": tool is not None,
        "toolName": tool or "none",
        "args": args or {},
        "reason": "test",
        "needsAnotherTool": another,
        "finalAnswer": answer,
    })


@pytest.fixture
def make_agent(factory):
    def _make(replies, max_steps=3, retriever=None):
        provider = ScriptedProvider(replies)
        agent = AgentExecutor(
            provider=provider,
            tools=factory.create_tool_registry(),
            scope_filter=ScopeFilter(),
            retriever=retriever,
            max_steps=max_steps,
        )
        return agent, provider

    return _make


@pytest.mark.asyncio
async def test_direct_final_answer(make_agent, ctx):
    agent, provider = make_agent([decision(answer="Hello, admin.")])

    outcome = await agent.run(ctx, "hi")

    assert outcome.text == "Hello, admin."
    assert outcome.provider == "scripted"
    assert outcome.steps == []
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_one_tool_then_synthesis(make_agent, ctx):
    agent, provider = make_agent([
        decision("getInventorySummary"),
        "You have 269 units across 8 SKUs.",
    ])

    outcome = await agent.run(ctx, "how is stock looking")

    assert outcome.text == "You have 269 units across 8 SKUs."
    assert [s.tool for s in outcome.steps] == ["getInventorySummary"]
    assert outcome.steps[0].outcome["totalUnits"] == 269
    assert outcome.steps[0].outcome["totalSkus"] == 8
    # Synthesis sees the full tool results
    assert "getInventorySummary" in provider.calls[1][-1].content


@pytest.mark.asyncio
async def test_loop_stops_at_max_steps(make_agent, ctx):
    agent, provider = make_agent([decision("listOrders", another=True)] * 3 + ["Two orders."], max_steps=3)

    outcome = await agent.run(ctx, "orders please")

    assert len(outcome.steps) == 3
    assert len(provider.calls) == 4
    assert outcome.text == "Two orders."


@pytest.mark.asyncio
async def test_unknown_tool_is_denied(make_agent, factory, ctx):
    agent, _ = make_agent([decision("dropDatabase"), "I can't do that."])

    outcome = await agent.run(ctx, "wipe everything")

    assert outcome.steps[0].denied
    assert outcome.steps[0].to_dict() == {
        "tool": "dropDatabase", "outcome": {"error": "tool not allowed"}, "denied": True,
    }
    assert len(await factory.inventory.items()) == 8


@pytest.mark.asyncio
async def test_unparseable_decision_goes_to_synthesis(make_agent, ctx):
    agent, provider = make_agent(["Sure, mugs are popular.", "Mugs sell well."])

    outcome = await agent.run(ctx, "what sells")

    assert outcome.text == "Mugs sell well."
    assert outcome.steps == []
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_empty_synthesis_gives_fallback_text(make_agent, ctx):
    agent, _ = make_agent(["no json here", "   "])
    outcome = await agent.run(ctx, "anything")
    assert outcome.text == EMPTY_ANSWER


@pytest.mark.asyncio
async def test_delete_without_token_asks_for_confirmation(make_agent, factory, ctx):
    agent, provider = make_agent([decision("deleteInventoryItem", {"id": "inv-mug"}, another=True)])

    outcome = await agent.run(ctx, "delete the mug")

    assert outcome.pending_confirmation
    assert outcome.text == (
        '⚠️ Deleting Ceramic Mug 11oz (DRK-MUG-11) cannot be undone. '
        'Reply "CONFIRM DELETE inv-mug" to proceed.'
    )
    assert len(provider.calls) == 1
    assert await factory.inventory.find_by_sku("DRK-MUG-11") is not None


@pytest.mark.asyncio
async def test_delete_with_token_runs_and_falls_back_to_tool_message(make_agent, factory, ctx):
    # Script ends after the decision, so synthesis fails and the tool message is used
    agent, _ = make_agent([
        decision("deleteInventoryItem", {"id": "inv-mug", "confirmToken": "CONFIRM DELETE inv-mug"}),
    ])

    outcome = await agent.run(ctx, "CONFIRM DELETE inv-mug")

    assert outcome.text == "✅ Deleted inventory item: Ceramic Mug 11oz (DRK-MUG-11)"
    assert not outcome.pending_confirmation
    assert await factory.inventory.find_by_sku("DRK-MUG-11") is None


@pytest.mark.asyncio
async def test_order_delete_with_wrong_token_is_refused(make_agent, factory, ctx):
    agent, _ = make_agent([
        decision("deleteOrder", {"id": "ord-1", "confirmToken": "CONFIRM DELETE ord-2"}),
    ])

    outcome = await agent.run(ctx, "delete order ord-1")

    assert outcome.pending_confirmation
    assert "order ORD-20231114-0001 for Ada Lovelace" in outcome.text
    assert len(await factory.orders.orders()) == 2


@pytest.mark.asyncio
async def test_bad_tool_args_become_error_outcome(make_agent, factory, ctx):
    agent, _ = make_agent([
        decision("updateInventoryStock", {"id": "inv-mug", "stock": -1}),
        "Stock cannot be negative.",
    ])

    outcome = await agent.run(ctx, "set mugs to -1")

    assert outcome.steps[0].outcome["error"].startswith("Invalid arguments for updateInventoryStock")
    assert outcome.text == "Stock cannot be negative."
    assert (await factory.inventory.get_item("inv-mug")).stock == 40


@pytest.mark.asyncio
async def test_tool_mutation_goes_through_executor(make_agent, factory, ctx):
    agent, _ = make_agent([
        decision("createOrder", {"customerName": "Grace", "productSku": "DRK-MUG-11", "quantity": 2}),
        "Order created.",
    ])

    outcome = await agent.run(ctx, "order 2 mugs for Grace")

    step = outcome.steps[0].outcome
    assert step["success"] is True
    assert step["orderNumber"] == "ORD-20231114-0003"
    assert step["action"]["endpoint"] == "/orders"
    assert (await factory.inventory.get_item("inv-mug")).stock == 38


@pytest.mark.asyncio
async def test_report_like_answer_is_replaced(make_agent, ctx):
    agent, _ = make_agent([decision(answer="Inventory Summary:\n- Total SKUs: 99")])
    outcome = await agent.run(ctx, "summarize")
    assert outcome.text == FABRICATED_REPORT_REDIRECT


@pytest.mark.asyncio
async def test_first_decision_failure_propagates(make_agent, ctx):
    agent, _ = make_agent([ProviderError("down", FailureReason.TIMEOUT)])
    with pytest.raises(ProviderError):
        await agent.run(ctx, "anything")


@pytest.mark.asyncio
async def test_later_decision_failure_still_answers(make_agent, ctx):
    agent, _ = make_agent([
        decision("listOrders", another=True),
        ProviderError("down", FailureReason.ERROR),
        "You have two orders.",
    ])

    outcome = await agent.run(ctx, "orders?")

    assert len(outcome.steps) == 1
    assert outcome.text == "You have two orders."


@pytest.mark.asyncio
async def test_context_is_included_in_decision_prompt(make_agent, factory, ctx):
    retriever = InventoryContextRetriever(factory.inventory, factory.orders)
    agent, provider = make_agent([decision(answer="About 40.")], retriever=retriever)

    await agent.run(ctx, "how is the mug doing")

    prompt = provider.calls[0][1].content
    assert "Ceramic Mug 11oz (SKU DRK-MUG-11, Drinkware): stock 40" in prompt
    assert "Orders by status: Delivered 1, Pending 1" in prompt


@pytest.mark.asyncio
async def test_registry_describes_allow_listed_tools(factory):
    registry = factory.create_tool_registry()

    assert len(registry.names()) == 12
    description = registry.describe()
    assert "- deleteInventoryItem{id, confirmToken?}:" in description
    assert "- createOrder{customerName, product?, productId?, productSku?, quantity, price?}:" in description


@pytest.mark.asyncio
async def test_retriever_failure_is_not_fatal(factory, ctx):
    provider = SimpleNamespace(
        name="openai",
        complete=AsyncMock(return_value=ProviderReply(text=decision(answer="Stock looks fine."),
                                                      provider="openai")),
    )
    retriever = SimpleNamespace(retrieve=AsyncMock(side_effect=RuntimeError("store offline")))
    agent = AgentExecutor(provider=provider, tools=factory.create_tool_registry(),
                          scope_filter=ScopeFilter(), retriever=retriever)

    outcome = await agent.run(ctx, "how is the mug doing")

    assert outcome.text == "Stock looks fine."
    assert outcome.provider == "openai"
    retriever.retrieve.assert_awaited_once_with("how is the mug doing")
    provider.complete.assert_awaited_once()
