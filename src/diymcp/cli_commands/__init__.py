"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from diymcp.cli_commands.ask import ask
    from diymcp.cli_commands.chat import chat
    from diymcp.cli_commands.resources import resources
    from diymcp.cli_commands.tools import tools

    cli.add_command(chat)
    cli.add_command(ask)
    cli.add_command(tools)
    cli.add_command(resources)
