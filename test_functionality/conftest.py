"""
Shared fixtures: in-memory stores, a controllable clock, a seeded shop
and scripted model providers. Nothing here touches disk or the network.
"""
import os
import sys
from typing import Sequence

import pytest
import pytest_asyncio

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from application.context import SessionContext
from domain.exceptions import FailureReason, ProviderError
from domain.ports import ChatMessage, ProviderReply
from factory import ServiceFactory
from infrastructure.config import Settings
from infrastructure.persistence.memory_repo import InMemoryDocumentStore, InMemoryKeyValueStore

# 2023-11-14T22:13:20Z
START_TIME = 1_700_000_000.0

SEED_INVENTORY = [
    {"id": "inv-tee-m", "name": "Black T-Shirt M", "sku": "APP-BTS-M", "stock": 24,
     "price": 19.99, "threshold": 5, "category": "Apparel"},
    {"id": "inv-tee-l", "name": "Black T-Shirt L", "sku": "APP-BTS-L", "stock": 3,
     "price": 19.99, "threshold": 5, "category": "Apparel"},
    {"id": "inv-mug", "name": "Ceramic Mug 11oz", "sku": "DRK-MUG-11", "stock": 40,
     "price": 12.99, "threshold": 5, "category": "Drinkware"},
    {"id": "inv-dtf", "name": "DTF Transfer Film", "sku": "MAT-DTF-001", "stock": 120,
     "price": 0.5, "threshold": 20, "category": "Materials"},
    {"id": "inv-dtf-gloss", "name": "DTF Film Glossy", "sku": "MAT-DTF-002", "stock": 50,
     "price": 0.6, "threshold": 10, "category": "Materials"},
    {"id": "inv-mailer", "name": "Poly Mailer 10x13", "sku": "PKG-MAILER-10X13", "stock": 2,
     "price": 0.25, "threshold": 10, "category": "Packing Materials"},
    {"id": "inv-mailer-s", "name": "Poly Mailer 6x9", "sku": "PKG-MAILER-6X9", "stock": 30,
     "price": 0.2, "threshold": 10, "category": "Packing Materials"},
    {"id": "inv-box", "name": "Shipping Box 8x8x4", "sku": "PKG-BOX-8X8X4", "stock": 0,
     "price": 0.9, "threshold": 5, "category": "Packing Materials"},
]

SEED_ORDERS = [
    {"id": "ord-1", "orderNumber": "ORD-20231114-0001", "customerName": "Ada Lovelace",
     "product": "Black T-Shirt M", "quantity": 2, "price": 19.99, "status": "Pending",
     "createdAt": "2023-11-14T10:00:00+00:00"},
    {"id": "ord-2", "orderNumber": "ORD-20231114-0002", "customerName": "Alan Turing",
     "product": "Ceramic Mug 11oz", "quantity": 1, "price": 12.99, "status": "Delivered",
     "createdAt": "2023-11-14T12:30:00+00:00"},
]


class FakeClock:
    """Callable clock the tests can move forward."""

    def __init__(self, start: float = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedProvider:
    """ChatProviderPort double that replays canned replies in order.

    A reply that is an Exception instance is raised instead of returned.
    """

    def __init__(self, replies: Sequence = (), name: str = "scripted"):
        self.name = name
        self._replies = list(replies)
        self.calls: list[list[ChatMessage]] = []

    async def complete(self, messages):
        self.calls.append(list(messages))
        if not self._replies:
            raise ProviderError(f"{self.name} script exhausted", FailureReason.EMPTY)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ProviderReply(text=reply, provider=self.name)


def seeded_store(inventory=SEED_INVENTORY, orders=SEED_ORDERS) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(seed={
        "inventory": [dict(d) for d in inventory],
        "orders": [dict(d) for d in orders],
    })


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return seeded_store()


@pytest.fixture
def ctx() -> SessionContext:
    return SessionContext(client_id="tab-1")


@pytest.fixture
def make_factory(clock, kv, store):
    """Build a ServiceFactory over the shared in-memory stores."""

    def _make(providers=(), **settings) -> ServiceFactory:
        config = Settings(store_backend="memory", **settings)
        return ServiceFactory(
            config,
            document_store=store,
            kv_store=kv,
            providers=list(providers),
            clock=clock,
        )

    return _make


@pytest_asyncio.fixture
async def factory(make_factory) -> ServiceFactory:
    f = make_factory()
    await f.initialize()
    return f


@pytest_asyncio.fixture
async def assistant(factory):
    """AssistantService in local-rules-only mode."""
    return factory.create_assistant_service()
