"""
factory - Composition root for the shop admin assistant.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters (REST, CLI) call this factory to get fully
configured services.

Usage:
    from factory import ServiceFactory
    from infrastructure.config import Settings

    config = Settings.from_env()
    factory = ServiceFactory(config)
    await factory.initialize()  # one-time startup

    assistant = factory.create_assistant_service()
    reply = await assistant.handle(ctx, "inventory summary")

Tests inject stores, providers and a clock instead of touching disk or
the network.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from agent.executor import AgentExecutor
from agent.tools.inventory import (
    BulkImportInventoryTool,
    CreateInventoryItemTool,
    DeleteInventoryItemTool,
    GetInventorySummaryTool,
    UpdateInventoryStockTool,
)
from agent.tools.orders import CreateOrderTool, DeleteOrderTool, ListOrdersTool, UpdateOrderStatusTool
from agent.tools.products import InitiateProductCreationTool
from agent.tools.registry import ToolRegistry
from agent.tools.reports import GetPackingAlertsTool, InventoryUsageReportTool
from application.intents.handlers import IntentHandlers
from application.intents.product_flow import ProductCreationFlow
from application.intents.resolver import DisambiguationResolver
from application.intents.rules import build_matcher
from application.services.action_executor import ActionExecutor
from application.services.assistant import AssistantService
from application.services.inventory import InventoryService
from application.services.orders import OrderService
from application.services.rate_limiter import RateLimiter
from application.services.reports import ReportService
from application.services.scope_filter import ScopeFilter
from application.services.session_store import SessionStore
from domain.exceptions import ConfigurationError
from domain.ports import ChatProviderPort, DocumentStorePort, KeyValueStorePort
from infrastructure.config import SUPPORTED_PROVIDERS, Settings
from infrastructure.llm.chat_provider import LangChainChatProvider, UnconfiguredProvider
from infrastructure.llm.provider_chain import ProviderChain
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.document_repo import SQLiteDocumentStore
from infrastructure.persistence.kv_repo import SQLiteKeyValueStore
from infrastructure.persistence.memory_repo import InMemoryDocumentStore, InMemoryKeyValueStore
from infrastructure.persistence.migrations import run_migrations
from infrastructure.retrieval.context_retriever import InventoryContextRetriever

logger = logging.getLogger(__name__)


DEMO_INVENTORY: list[dict[str, Any]] = [
    {"name": "Black T-Shirt M", "sku": "APP-BTS-M", "stock": 24, "price": 19.99,
     "threshold": 5, "category": "Apparel"},
    {"name": "Black T-Shirt L", "sku": "APP-BTS-L", "stock": 3, "price": 19.99,
     "threshold": 5, "category": "Apparel"},
    {"name": "White Hoodie", "sku": "APP-WHD-M", "stock": 8, "price": 39.99,
     "threshold": 3, "category": "Apparel"},
    {"name": "Ceramic Mug 11oz", "sku": "DRK-MUG-11", "stock": 40, "price": 12.99,
     "threshold": 5, "category": "Drinkware"},
    {"name": "DTF Transfer Film", "sku": "MAT-DTF-001", "stock": 120, "price": 0.5,
     "threshold": 20, "category": "Materials"},
    {"name": "Poly Mailer 10x13", "sku": "PKG-MAILER-10X13", "stock": 2, "price": 0.25,
     "threshold": 10, "category": "Packing Materials", "dimensions": "10x13 in"},
    {"name": "Shipping Box 8x8x4", "sku": "PKG-BOX-8X8X4", "stock": 0, "price": 0.9,
     "threshold": 5, "category": "Packing Materials", "dimensions": "8x8x4 in"},
]


class ServiceFactory:
    """Composition root: wires all dependencies together.

    Call initialize() once at startup, then create services as needed.
    Stores and providers are built once and shared by every service the
    factory hands out.
    """

    def __init__(
        self,
        config: Settings,
        *,
        document_store: Optional[DocumentStorePort] = None,
        kv_store: Optional[KeyValueStorePort] = None,
        providers: Optional[Sequence[ChatProviderPort]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._config = config
        self._clock = clock
        self._connection: Optional[AsyncSQLiteConnection] = None
        self._initialized = False

        if document_store is None or kv_store is None:
            if config.store_backend == "memory":
                document_store = document_store or InMemoryDocumentStore()
                kv_store = kv_store or InMemoryKeyValueStore()
            elif config.store_backend == "sqlite":
                self._connection = AsyncSQLiteConnection(config.db_path)
                document_store = document_store or SQLiteDocumentStore(self._connection)
                kv_store = kv_store or SQLiteKeyValueStore(self._connection)
            else:
                raise ConfigurationError(
                    f"Unsupported STORE_BACKEND '{config.store_backend}' (use 'sqlite' or 'memory')"
                )
        self._documents: DocumentStorePort = document_store
        self._kv: KeyValueStorePort = kv_store

        self._provider_chain = ProviderChain(
            list(providers) if providers is not None else self._build_providers()
        )

        # Shared services
        self._scope_filter = ScopeFilter()
        self._sessions = SessionStore(self._kv, ttl_seconds=config.session_ttl_seconds, clock=clock)
        self._inventory = InventoryService(self._documents, clock=clock)
        self._orders = OrderService(self._documents, self._inventory, clock=clock)
        self._reports = ReportService(self._documents)
        self._executor = ActionExecutor(self._inventory, self._orders, self._sessions)

    async def initialize(self) -> None:
        """One-time startup: run migrations for the SQLite backend."""
        logger.info("Initializing ServiceFactory...")
        if self._connection is not None:
            await run_migrations(self._connection)
            logger.info("Database migrations complete")
        logger.info(
            "Providers: %s (configured=%s)",
            ", ".join(self._provider_chain.provider_names) or "none",
            self._provider_chain.configured,
        )
        self._initialized = True
        logger.info("ServiceFactory ready")

    # ------------------------------------------------------------------
    # Service access
    # ------------------------------------------------------------------

    @property
    def config(self) -> Settings:
        return self._config

    @property
    def inventory(self) -> InventoryService:
        return self._inventory

    @property
    def orders(self) -> OrderService:
        return self._orders

    @property
    def reports(self) -> ReportService:
        return self._reports

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    @property
    def provider_chain(self) -> ProviderChain:
        return self._provider_chain

    def create_rate_limiter(self) -> RateLimiter:
        """Per-IP request limiter over the shared key-value store."""
        return RateLimiter(
            self._kv,
            window_seconds=self._config.rate_window_seconds,
            max_per_window=self._config.rate_max_per_window,
            clock=self._clock,
        )

    def create_assistant_service(self) -> AssistantService:
        """Create the AssistantService with matcher, resolver and agent wired."""
        self._ensure_initialized()
        product_flow = ProductCreationFlow(self._inventory, self._executor, self._sessions)
        handlers = IntentHandlers(
            self._inventory, self._orders, self._executor, self._sessions, product_flow,
        )
        return AssistantService(
            sessions=self._sessions,
            scope_filter=self._scope_filter,
            matcher=build_matcher(handlers),
            resolver=DisambiguationResolver(self._sessions, self._executor, product_flow),
            agent=self.create_agent(),
        )

    # ------------------------------------------------------------------
    # Agent creation
    # ------------------------------------------------------------------

    def create_tool_registry(self) -> ToolRegistry:
        """The fixed, allow-listed tool catalog."""
        registry = ToolRegistry()
        registry.register(GetInventorySummaryTool(self._inventory))
        registry.register(CreateInventoryItemTool(self._executor))
        registry.register(UpdateInventoryStockTool(self._executor))
        registry.register(ListOrdersTool(self._orders))
        registry.register(UpdateOrderStatusTool(self._executor))
        registry.register(CreateOrderTool(self._executor))
        registry.register(InitiateProductCreationTool(self._executor))
        registry.register(GetPackingAlertsTool(self._inventory))
        registry.register(InventoryUsageReportTool(self._reports))
        registry.register(BulkImportInventoryTool(self._executor))
        registry.register(DeleteInventoryItemTool(self._inventory, self._executor))
        registry.register(DeleteOrderTool(self._orders, self._executor))
        return registry

    def create_agent(self) -> Optional[AgentExecutor]:
        """AgentExecutor over the provider chain, or None when no provider is configured."""
        if not self._provider_chain.configured:
            logger.warning("No LLM provider configured; running in local-rules-only mode")
            return None
        return AgentExecutor(
            provider=self._provider_chain,
            tools=self.create_tool_registry(),
            scope_filter=self._scope_filter,
            retriever=InventoryContextRetriever(self._inventory, self._orders),
            max_steps=self._config.agent_max_steps,
            transcript_chars=self._config.agent_transcript_chars,
        )

    # ------------------------------------------------------------------
    # Demo data
    # ------------------------------------------------------------------

    async def seed_demo_inventory(self) -> int:
        """Insert DEMO_INVENTORY items whose SKU is not present yet."""
        existing = {item.sku for item in await self._inventory.items()}
        created = 0
        for row in DEMO_INVENTORY:
            if row["sku"] in existing:
                continue
            await self._documents.create("inventory", dict(row, dateAdded=_iso_now(self._clock)))
            created += 1
        logger.info("Seeded %d demo inventory item(s)", created)
        return created

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_providers(self) -> list[ChatProviderPort]:
        providers: list[ChatProviderPort] = []
        for name in self._config.llm_providers:
            if name not in SUPPORTED_PROVIDERS:
                logger.warning("Ignoring unknown LLM provider '%s'", name)
                continue
            try:
                providers.append(LangChainChatProvider.from_settings(name, self._config))
            except ConfigurationError as exc:
                logger.warning("Provider %s unconfigured: %s", name, exc)
                providers.append(UnconfiguredProvider(name, exc))
        return providers

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )


def _iso_now(clock: Callable[[], float]) -> str:
    return datetime.fromtimestamp(clock(), tz=timezone.utc).isoformat()
