"""
FastAPI application - REST adapter for the shop admin assistant.

Usage:
    python run_api.py

Or directly:
    uvicorn adapters.rest.app:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Ensure src/ is on sys.path when invoked via uvicorn directly
_src_dir = Path(__file__).resolve().parent.parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from infrastructure.config import Settings
from factory import ServiceFactory
from adapters.rest.dependencies import set_factory
from adapters.rest.routers import assistant, inventory

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


def create_app(factory: Optional[ServiceFactory] = None) -> FastAPI:
    """Build the app. A pre-built factory (tests) skips Settings.from_env()."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize ServiceFactory on startup."""
        active = factory
        if active is None:
            config = Settings.from_env(project_root=_src_dir.parent)
            active = ServiceFactory(config)
        await active.initialize()
        set_factory(active)
        yield
        set_factory(None)
        # No teardown needed: aiosqlite connections are per-operation

    app = FastAPI(
        title="Shop Admin Assistant",
        version=API_VERSION,
        description="Natural-language inventory and order administration.",
        lifespan=lifespan,
    )

    # CORS: permissive for development; tighten allowed_origins in production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(assistant.router)
    app.include_router(inventory.router)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok", "version": API_VERSION}

    return app


app = create_app()
