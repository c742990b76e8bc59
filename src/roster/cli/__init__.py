"""
CLI layer for roster.

A Typer application whose commands drive the reconciliation engine the
way the management screen does: load, then one intent per command.  All
state handling lives in ``roster.engine``; this package handles argument
parsing and terminal output.

Entry point::

    roster --help
"""

from roster.cli.app import app

__all__ = ["app"]
