"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from the environment or passed
explicitly. Nothing else in the project reads os.environ.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

SUPPORTED_PROVIDERS = ("openai", "groq", "ollama")


def _split_providers(raw: str) -> tuple[str, ...]:
    names = [p.strip().lower() for p in (raw or "").split(",")]
    return tuple(p for p in names if p)


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the shop admin assistant.

    No module-level globals; construct via from_env() or pass explicitly
    in tests.
    """
    project_root: Path = field(default_factory=Path.cwd)

    # ── LLM provider chain ──────────────────────────────────────
    # Tried in order; the first provider that answers wins.
    # Allowed names: "openai", "groq", "ollama"
    llm_providers: tuple[str, ...] = ("openai", "groq")

    # Model names per provider
    llm_model_openai: str = "gpt-4o-mini"
    llm_model_groq: str = "llama-3.3-70b-versatile"
    llm_model_ollama: str = "llama3.2"

    # Connection details
    ollama_base_url: str = "http://localhost:11434/"
    openai_api_key: str = ""
    groq_api_key: str = ""
    llm_timeout_seconds: float = 15.0

    # Agent loop
    agent_max_steps: int = 3
    agent_transcript_chars: int = 600

    # Sessions and rate limiting
    session_ttl_seconds: int = 600
    rate_window_seconds: int = 300
    rate_max_per_window: int = 60

    # Storage: "sqlite" or "memory"
    store_backend: str = "sqlite"
    db_path: str = "shop.db"

    def model_for(self, provider: str) -> str:
        """Return the model name configured for provider."""
        if provider == "openai":
            return self.llm_model_openai
        elif provider == "groq":
            return self.llm_model_groq
        return self.llm_model_ollama

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> Settings:
        """Build Settings from .env / process environment."""
        from dotenv import load_dotenv
        load_dotenv()

        root = project_root or Path(__file__).resolve().parent.parent.parent

        return cls(
            project_root=root,

            llm_providers=_split_providers(os.getenv("LLM_PROVIDERS", "openai,groq")),
            llm_model_openai=os.getenv("LLM_MODEL_OPENAI", "gpt-4o-mini"),
            llm_model_groq=os.getenv("LLM_MODEL_GROQ", "llama-3.3-70b-versatile"),
            llm_model_ollama=os.getenv("LLM_MODEL_OLLAMA", "llama3.2"),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/"),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            llm_timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", "15")),

            agent_max_steps=int(os.getenv("AGENT_MAX_STEPS", "3")),
            agent_transcript_chars=int(os.getenv("AGENT_TRANSCRIPT_CHARS", "600")),

            session_ttl_seconds=int(os.getenv("SESSION_TTL_SECONDS", "600")),
            rate_window_seconds=int(os.getenv("RATE_WINDOW_SECONDS", "300")),
            rate_max_per_window=int(os.getenv("RATE_MAX_PER_WINDOW", "60")),

            store_backend=os.getenv("STORE_BACKEND", "sqlite").strip().lower(),
            db_path=os.getenv("DB_PATH", str(root / "shop.db")),
        )
