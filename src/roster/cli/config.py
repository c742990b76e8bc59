"""
CLI: ``roster config`` — inspect effective settings.
"""

from __future__ import annotations

import typer

from roster.cli.utils import console, load_settings

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    fmt: str = typer.Option("table", "--format", "-f", help="table, json or env"),
) -> None:
    """Show effective roster settings."""
    settings = load_settings()

    if fmt == "json":
        console.print_json(settings.model_dump_json())
    elif fmt == "env":
        for key, value in settings.model_dump(mode="json").items():
            typer.echo(f"ROSTER_{key.upper()}={'' if value is None else value}")
    else:
        console.print("[bold]Roster settings[/bold]")
        for key, value in settings.model_dump(mode="json").items():
            console.print(f"  [cyan]{key}[/cyan]: {value}")
