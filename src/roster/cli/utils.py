"""
CLI utility helpers — engine sessions, error reporting and output formatting.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from roster.core.errors import DraftValidationError, RosterError
from roster.core.logging import configure_logging
from roster.core.models import Record
from roster.core.settings import LogFormat, RosterSettings, get_settings
from roster.engine import ReconciliationEngine, build_engine

console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")


# ── Session helpers ──────────────────────────────────────────────────────


def load_settings() -> RosterSettings:
    """Settings plus logging setup; exits with code 1 on invalid settings."""
    try:
        settings = get_settings()
    except RosterError as exc:
        report_error(exc)
        raise typer.Exit(code=1) from exc
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_format is LogFormat.JSON,
    )
    return settings


@asynccontextmanager
async def open_session(settings: RosterSettings, *, offline: bool = False) -> AsyncIterator[ReconciliationEngine]:
    """Engine with its collection loaded; the directory client is closed on exit."""
    engine = build_engine(settings, offline=offline)
    try:
        await engine.load()
        yield engine
    finally:
        await engine.aclose()


def run(coro_fn: Callable[[], Awaitable[T]]) -> T:
    """Run an async command body, turning roster errors into exit code 1."""
    try:
        return asyncio.run(coro_fn())
    except RosterError as exc:
        report_error(exc)
        raise typer.Exit(code=1) from exc


def report_error(exc: RosterError) -> None:
    if isinstance(exc, DraftValidationError):
        err_console.print("[bold red]Invalid user:[/bold red]")
        for path, message in sorted(exc.errors.items()):
            err_console.print(f"  [cyan]{path}[/cyan]: {message}")
        return
    err_console.print(f"[bold red]Error:[/bold red] {exc.message}")


# ── Output helpers ───────────────────────────────────────────────────────


def output_records(records: Sequence[Record], *, as_json: bool = False, title: str = "") -> None:
    """Render records as a Rich table (or a JSON array)."""
    if as_json:
        console.print_json(json.dumps([record.to_payload() for record in records]))
        return

    if not records:
        console.print("[dim]No users.[/dim]")
        return

    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for column in ("Id", "Name", "Email", "Phone", "Username", "Address", "Company", "Website"):
        table.add_column(column, overflow="fold")
    for record in records:
        address = record.address
        table.add_row(
            str(record.id),
            record.name,
            record.email,
            record.phone,
            record.username,
            f"{(address.street if address else None) or ''}, {(address.city if address else None) or ''}",
            (record.company.name if record.company else None) or "",
            record.website or "",
        )
    console.print(table)


def output_record(record: Record, *, as_json: bool = False) -> None:
    """Render one record grouped like the details page."""
    if as_json:
        console.print_json(json.dumps(record.to_payload()))
        return

    payload = record.to_payload()
    console.print(f"[bold]{record.name}[/bold]  [dim]#{record.id}[/dim]")
    _print_dict(
        "Contact Information",
        {
            "Email": record.email,
            "Phone": record.phone,
            "Username": record.username,
            "Website": record.website,
        },
    )
    _print_dict("Address", payload.get("address") or {})
    _print_dict("Company", payload.get("company") or {})


def _print_dict(title: str, data: dict[str, Any]) -> None:
    console.print(f"\n[bold]{title}[/bold]")
    for key, value in data.items():
        if isinstance(value, dict):
            value = ", ".join(f"{k}={v}" for k, v in value.items())
        console.print(f"  [cyan]{key}[/cyan]: {value if value not in (None, '') else '-'}")
