"""Command registration utilities for the Tunestream CLI."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from tunestream.cli.commands import youtube
from tunestream.cli.commands.youtube import BackendFactory


def register_commands(app: typer.Typer, console: Console, backend_factory: Optional[BackendFactory] = None) -> None:
    """Attach command groups to the provided Typer application."""

    youtube.register(app, console, backend_factory)

    @app.callback(invoke_without_command=True)
    def main_callback(ctx: typer.Context) -> None:
        """Search, browse and inspect YouTube through the resilient provider core."""

        if ctx.invoked_subcommand is None:
            console.print("[bold green]Tunestream CLI ready for commands.[/bold green]")


__all__ = ["register_commands"]
