"""
Run the Shop Admin Assistant CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    init     Create the database schema (--seed adds demo inventory)
    ask      One-shot command, e.g. ask "inventory summary"
    chat     Interactive session (--client-id to pick the session key)
    alerts   Packing materials that are low or out of stock
    usage    Order volume and packaging usage between two dates

Examples:
    python run_cli.py init --seed
    python run_cli.py ask "add 10 black t-shirts"
    python run_cli.py chat --client-id front-desk

Environment variables: see run_api.py. Without OPENAI_API_KEY / GROQ_API_KEY
the assistant runs in local-rules-only mode.
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adapters.cli.main import app

if __name__ == "__main__":
    app()
