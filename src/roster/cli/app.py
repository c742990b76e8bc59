"""
Root Typer application for the roster CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from roster.cli import users
from roster.cli.config import app as config_app

app = Typer(
    name="roster",
    help="roster — manage directory users with a locally persisted working set.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from roster import __version__

        typer.echo(f"roster {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    offline: bool = typer.Option(
        False,
        "--offline",
        help="Use the built-in echo directory instead of the remote API.",
    ),
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """roster CLI — list, search, create, edit and delete users."""
    ctx.obj = {"offline": offline}


# ── Command registration ─────────────────────────────────────────────────

app.command("list")(users.list_users)
app.command("show")(users.show_user)
app.command("add")(users.add_user)
app.command("edit")(users.edit_user)
app.command("delete")(users.delete_user)
app.command("purge")(users.purge_snapshot)

app.add_typer(config_app, name="config", help="Configuration inspection.")


if __name__ == "__main__":
    app()
