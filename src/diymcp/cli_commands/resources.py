"""``diymcp resources`` — list and read server resources."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from diymcp.cli_commands._output import (
    console,
    print_connected,
    print_content,
    print_error,
    print_resources_table,
)

if TYPE_CHECKING:
    from diymcp.config import Settings
    from diymcp.protocols.mcp.catalog import Catalog
    from diymcp.protocols.mcp.models import ResourceReadResult


@click.group()
def resources() -> None:
    """Discover and read resources."""


@resources.command("list")
@click.pass_obj
def list_resources(settings: Settings) -> None:
    """List the resources the server offers."""
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
    if not catalog.resources:
        console.print("[yellow]No resources available.[/yellow]")
        return
    print_resources_table(catalog.resources)


@resources.command("read")
@click.argument("uri")
@click.pass_obj
def read_resource(settings: Settings, uri: str) -> None:
    """Read the resource at URI and print its contents."""
    from diymcp.protocols.errors import RemoteError
    from diymcp.protocols.mcp.client import MCPClient

    async def _read() -> ResourceReadResult:
        async with MCPClient(settings.server, request_timeout=settings.request_timeout) as client:
            return await client.read_resource(uri)

    try:
        result = asyncio.run(_read())
    except RemoteError as exc:
        print_error("Resource error", exc)
        sys.exit(1)
    except Exception as exc:
        print_error("Connection error", exc)
        sys.exit(1)

    print_content(result.contents)
