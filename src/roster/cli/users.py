"""
CLI: ``roster list|show|add|edit|delete|purge`` — user management commands.

Every command starts a fresh session: the engine fetches the directory,
prefers the local snapshot when one exists, applies one intent and writes
the snapshot back.
"""

from __future__ import annotations

import typer

from roster.cli.utils import (
    console,
    err_console,
    load_settings,
    open_session,
    output_record,
    output_records,
    run,
)
from roster.core.errors import RosterError
from roster.engine import build_store, lookup_cached
from roster.engine.reconciler import ReconciliationEngine

# Option name → draft field path
_FORM_FIELDS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "street": "address.street",
    "city": "address.city",
    "company": "company.name",
    "website": "website",
}


def _apply_edits(engine: ReconciliationEngine, values: dict[str, str | None]) -> None:
    for option, value in values.items():
        if value is not None:
            engine.edit(_FORM_FIELDS[option], value)


def list_users(
    ctx: typer.Context,
    search: str = typer.Option("", "--search", "-s", help="Case-insensitive name filter"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List users, optionally filtered by name."""
    settings = load_settings()

    async def _run() -> None:
        async with open_session(settings, offline=ctx.obj["offline"]) as engine:
            view = engine.set_search(search)
            output_records(view, as_json=json_out, title="Users")
            if not json_out:
                console.print(
                    f"[dim]{len(view)} of {len(engine.records)} users"
                    f" (source: {engine.state.source.value})[/dim]"
                )

    run(_run)


def show_user(
    record_id: int = typer.Argument(..., help="User id"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one user from the local snapshot."""
    settings = load_settings()
    try:
        record = lookup_cached(build_store(settings), record_id)
    except RosterError as exc:
        err_console.print(f"[bold red]Error:[/bold red] {exc.message}")
        raise typer.Exit(code=1) from exc
    output_record(record, as_json=json_out)


def add_user(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Full name (min 3 characters)"),
    email: str = typer.Option(..., "--email"),
    phone: str = typer.Option(..., "--phone"),
    street: str = typer.Option(..., "--street"),
    city: str = typer.Option(..., "--city"),
    company: str | None = typer.Option(None, "--company", help="Company name (optional)"),
    website: str | None = typer.Option(None, "--website", help="Website (optional)"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Create a user."""
    settings = load_settings()
    values = dict(name=name, email=email, phone=phone, street=street, city=city, company=company, website=website)

    async def _run() -> None:
        async with open_session(settings, offline=ctx.obj["offline"]) as engine:
            engine.open_form()
            _apply_edits(engine, values)
            record = await engine.create()
        if json_out:
            output_record(record, as_json=True)
        else:
            console.print(f"[green]✓[/green] Created user {record.id} ({record.username})")

    run(_run)


def edit_user(
    ctx: typer.Context,
    record_id: int = typer.Argument(..., help="User id"),
    name: str | None = typer.Option(None, "--name"),
    email: str | None = typer.Option(None, "--email"),
    phone: str | None = typer.Option(None, "--phone"),
    street: str | None = typer.Option(None, "--street"),
    city: str | None = typer.Option(None, "--city"),
    company: str | None = typer.Option(None, "--company"),
    website: str | None = typer.Option(None, "--website"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Update a user; options not given keep their current values."""
    settings = load_settings()
    values = dict(name=name, email=email, phone=phone, street=street, city=city, company=company, website=website)

    async def _run() -> None:
        async with open_session(settings, offline=ctx.obj["offline"]) as engine:
            engine.open_form(record_id)
            _apply_edits(engine, values)
            record = await engine.update()
        if json_out:
            output_record(record, as_json=True)
        else:
            console.print(f"[green]✓[/green] Updated user {record.id}")

    run(_run)


def delete_user(
    ctx: typer.Context,
    record_id: int = typer.Argument(..., help="User id"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a user."""
    if not force:
        if not typer.confirm(f"Delete user {record_id}?"):
            console.print("[dim]Aborted.[/dim]")
            raise typer.Exit(code=0)

    settings = load_settings()

    async def _run() -> bool:
        async with open_session(settings, offline=ctx.obj["offline"]) as engine:
            return await engine.delete(record_id)

    if run(_run):
        console.print(f"[green]✓[/green] Deleted user {record_id}")
    else:
        console.print(f"[yellow]No user {record_id}; nothing to delete[/yellow]")


def purge_snapshot(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Discard the local snapshot so the next session starts from the directory."""
    store = build_store(load_settings())
    try:
        if not store.exists():
            console.print("[yellow]No local snapshot; nothing to purge[/yellow]")
            return
        if not force and not typer.confirm("Discard all local edits?"):
            console.print("[dim]Aborted.[/dim]")
            raise typer.Exit(code=0)
        store.clear()
    except RosterError as exc:
        err_console.print(f"[bold red]Error:[/bold red] {exc.message}")
        raise typer.Exit(code=1) from exc
    console.print("[green]✓[/green] Discarded local snapshot; the next session loads from the directory")
