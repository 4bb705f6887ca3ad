"""``diymcp tools`` — list and call tools on the server."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import TYPE_CHECKING, Any

import click

from diymcp.cli_commands._output import (
    console,
    print_connected,
    print_content,
    print_error,
    print_tools_table,
)

if TYPE_CHECKING:
    from diymcp.config import Settings
    from diymcp.protocols.mcp.catalog import Catalog
    from diymcp.protocols.mcp.models import ToolCallResult


@click.group()
def tools() -> None:
    """Discover and call tools."""


@tools.command("list")
@click.pass_obj
def list_tools(settings: Settings) -> None:
    """List the tools the server offers."""
    from diymcp.protocols.mcp.client import MCPClient

    async def _list() -> Catalog:
        async with MCPClient(settings.server, request_timeout=settings.request_timeout) as client:
            return client.catalog

    try:
        catalog = asyncio.run(_list())
    except Exception as exc:
        print_error("Connection error", exc)
        sys.exit(1)

    print_connected(catalog)
    if not catalog.tools:
        console.print("[yellow]No tools available.[/yellow]")
        return
    print_tools_table(catalog.tools)


@tools.command("call")
@click.argument("name")
@click.option(
    "--arg",
    "-a",
    "raw_args",
    multiple=True,
    metavar="KEY=VALUE",
    help="Tool argument; VALUE is parsed as JSON when possible.",
)
@click.pass_obj
def call_tool(settings: Settings, name: str, raw_args: tuple[str, ...]) -> None:
    """Call tool NAME and print its content."""
    from diymcp.protocols.errors import RemoteError, ToolNotFoundError
    from diymcp.protocols.mcp.client import MCPClient

    try:
        arguments = parse_key_values(raw_args)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--arg") from exc

    async def _call() -> ToolCallResult:
        async with MCPClient(settings.server, request_timeout=settings.request_timeout) as client:
            return await client.call_tool(name, arguments)

    try:
        result = asyncio.run(_call())
    except (RemoteError, ToolNotFoundError) as exc:
        print_error("Tool error", exc)
        sys.exit(1)
    except Exception as exc:
        print_error("Connection error", exc)
        sys.exit(1)

    print_content(result.content)


def parse_key_values(pairs: tuple[str, ...] | list[str]) -> dict[str, Any]:
    """Turn ``("name=Latte", "size=2")`` into ``{"name": "Latte", "size": 2}``."""
    arguments: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            msg = f"expected KEY=VALUE, got {pair!r}"
            raise ValueError(msg)
        try:
            arguments[key] = json.loads(value)
        except json.JSONDecodeError:
            arguments[key] = value
    return arguments
