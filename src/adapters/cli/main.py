"""
adapters.cli.main - CLI adapter for the shop admin assistant.

Mirrors src/adapters/rest/ but for terminal use. Uses the same
ServiceFactory and AssistantService as the REST API so all behaviour
(local rules, disambiguation, agent) is identical.

Commands
--------
  chat     Interactive session keyed by a client id
  ask      One-shot command
  alerts   Packing materials that are low or out of stock
  usage    Units, revenue and packaging used between two dates
  init     Create the database schema (optionally seed demo inventory)

Usage
-----
  python run_cli.py init --seed
  python run_cli.py ask "inventory summary"
  python run_cli.py chat --client-id shop-laptop
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

# ── Ensure src/ is on the path ──
_SRC = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(_SRC))

import typer
from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from application.context import SessionContext
from domain.exceptions import ValidationError
from domain.models import AssistantReply, ReplySource
from factory import ServiceFactory
from infrastructure.config import Settings

__version__ = "0.1.0"

console = Console()
app = typer.Typer(
    help="Shop Admin Assistant CLI",
    add_completion=False,
    no_args_is_help=True,
)

_SOURCE_STYLE = {
    ReplySource.DIRECT.value: "green",
    ReplySource.GUARDRAIL.value: "yellow",
    ReplySource.LOCAL_FALLBACK.value: "yellow",
    ReplySource.OFFLINE.value: "red",
}


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

async def _make_factory() -> ServiceFactory:
    config = Settings.from_env()
    factory = ServiceFactory(config)
    await factory.initialize()
    return factory


def _render_reply(reply: AssistantReply) -> None:
    """Print the reply text, then numbered options or a pending action."""
    style = _SOURCE_STYLE.get(reply.source, "cyan")
    console.print(Panel(Markdown(reply.text), title=f"Assistant [{reply.source}]", border_style=style))

    if reply.options:
        table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
        table.add_column("#", justify="right", style="bold cyan")
        table.add_column("Option")
        for option in reply.options:
            table.add_row(option["send"], option["label"])
        console.print(table)
        console.print("[dim]Reply with a number or SKU, or 'cancel'.[/dim]")

    if reply.action is not None and not reply.executed:
        console.print(
            f"[dim]Pending action {reply.action.type.value} "
            f"({reply.action.method} {reply.action.endpoint}). "
            "Repeat the command with 'confirm' to execute.[/dim]"
        )


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"shop-admin v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Assistant
# ---------------------------------------------------------------------------

@app.command()
def ask(
    text: str = typer.Argument(..., help="Admin command, e.g. \"add 10 to SKU-APP-BTS-M\"."),
    client_id: str = typer.Option("cli", "--client-id", "-c", help="Session key."),
) -> None:
    """Run one command through the assistant."""
    async def _run() -> None:
        factory = await _make_factory()
        service = factory.create_assistant_service()
        ctx = SessionContext(client_id=client_id)
        with console.status("[bold cyan]Thinking…", spinner="dots"):
            reply = await service.handle(ctx, text)
        _render_reply(reply)

    asyncio.run(_run())


@app.command()
def chat(
    client_id: str = typer.Option("cli", "--client-id", "-c", help="Session key."),
) -> None:
    """Start an interactive admin session."""
    async def _run() -> None:
        factory = await _make_factory()
        service = factory.create_assistant_service()
        ctx = SessionContext(client_id=client_id)

        mode = "AI enabled" if service.ai_enabled else "local rules only"
        console.print(Panel(
            f"[bold]Shop Admin Assistant[/bold] ({mode})\n"
            f"Session [bold]{client_id}[/bold]\n"
            "Type a command, [bold]reset[/bold] to clear the session, "
            "or [bold]exit[/bold] / [bold]quit[/bold] to stop.",
            border_style="cyan",
        ))

        while True:
            try:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
            except (KeyboardInterrupt, EOFError):
                console.print("\n[dim]Goodbye![/dim]")
                break

            command = user_input.strip().lower()
            if command in ("exit", "quit", "q", "bye"):
                console.print("[dim]Goodbye![/dim]")
                break
            if not command:
                continue
            if command == "reset":
                await service.reset(client_id)
                console.print("[dim]Session cleared.[/dim]")
                continue

            ctx.new_request()
            with console.status("[bold cyan]Thinking…", spinner="dots"):
                reply = await service.handle(ctx, user_input)
            console.print()
            _render_reply(reply)

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Commands: Reports
# ---------------------------------------------------------------------------

@app.command()
def alerts(
    threshold: int = typer.Option(5, "--threshold", "-t", min=0,
                                  help="Threshold for items without their own."),
) -> None:
    """Show packing materials that are out of stock or running low."""
    async def _run() -> None:
        factory = await _make_factory()
        report = await factory.inventory.packing_alerts(threshold)

        table = Table(title="Packing alerts", box=box.ROUNDED)
        table.add_column("Status", style="bold")
        table.add_column("Name")
        table.add_column("SKU")
        table.add_column("Stock", justify="right")
        table.add_column("Threshold", justify="right")
        for label, style, rows in (("OUT", "red", report["out"]), ("LOW", "yellow", report["low"])):
            for row in rows:
                table.add_row(
                    f"[{style}]{label}[/{style}]", str(row["name"]), str(row["sku"] or "N/A"),
                    str(row["stock"]), str(row["threshold"]),
                )

        counts = report["counts"]
        if not counts["low"] and not counts["out"]:
            console.print(f"[green]All {counts['totalPacking']} packing item(s) are stocked.[/green]")
            return
        console.print(table)

    asyncio.run(_run())


@app.command()
def usage(
    start: str = typer.Argument(..., help="YYYY-MM-DD"),
    end: str = typer.Argument(..., help="YYYY-MM-DD, inclusive"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw report."),
) -> None:
    """Summarize order volume and packaging usage for a date range."""
    async def _run() -> None:
        factory = await _make_factory()
        try:
            report = await factory.reports.usage_report(start, end)
        except ValidationError as exc:
            console.print(f"[bold red]{exc}[/bold red]")
            raise typer.Exit(code=1)

        if as_json:
            console.print_json(json.dumps(report))
            return

        totals = report["totals"]
        console.print(Panel(
            f"Orders: [bold]{totals['orders']}[/bold]   Units: [bold]{totals['units']}[/bold]   "
            f"Revenue: [bold]${totals['revenue']:.2f}[/bold]",
            title=f"Usage {start} → {end}",
            border_style="cyan",
        ))
        table = Table(box=box.SIMPLE)
        table.add_column("Product")
        table.add_column("SKU")
        table.add_column("Qty", justify="right")
        table.add_column("Revenue", justify="right")
        for rec in report["products"]:
            table.add_row(rec["name"], str(rec["sku"] or "N/A"), str(rec["quantity"]), f"${rec['revenue']:.2f}")
        if report["products"]:
            console.print(table)

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Commands: Init (first-time setup)
# ---------------------------------------------------------------------------

@app.command()
def init(
    seed: bool = typer.Option(
        False, "--seed", "-s",
        help="Insert a small demo inventory.",
    ),
) -> None:
    """Create the database schema. Safe to run repeatedly."""
    async def _run() -> None:
        factory = await _make_factory()
        created = await factory.seed_demo_inventory() if seed else 0
        console.print(Panel(
            "[bold green]Store ready![/bold green]\n"
            f"Backend: {factory.config.store_backend} ({factory.config.db_path})\n"
            + (f"Seeded {created} demo item(s).\n" if seed else "")
            + "Run [bold]chat[/bold] or [bold]ask[/bold] to start.",
            border_style="green",
        ))

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log at INFO level."),
) -> None:
    """Shop Admin Assistant CLI"""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
