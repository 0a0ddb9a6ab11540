"""
Run the Shop Admin Assistant REST API.

Usage:
    python run_api.py

Environment variables (all optional, also read from .env):
    LLM_PROVIDERS          Ordered provider chain, comma separated (default: openai,groq)
    OPENAI_API_KEY         Enables the "openai" provider
    GROQ_API_KEY           Enables the "groq" provider
    OLLAMA_BASE_URL        Ollama server URL (default: http://localhost:11434/)
    LLM_TIMEOUT_SECONDS    Per-call provider timeout (default: 15)
    AGENT_MAX_STEPS        Tool calls per request (default: 3)
    SESSION_TTL_SECONDS    Conversational state lifetime (default: 600)
    RATE_WINDOW_SECONDS    Rate-limit window (default: 300)
    RATE_MAX_PER_WINDOW    Requests per IP per window (default: 60)
    STORE_BACKEND          "sqlite" or "memory" (default: sqlite)
    DB_PATH                SQLite database file path (default: shop.db)
"""

import logging
import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

import uvicorn

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "adapters.rest.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
