"""Shared CLI output formatters."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from diymcp.core.orchestration.loop import LoopEvent, LoopOutcome
    from diymcp.protocols.mcp.catalog import Catalog
    from diymcp.protocols.mcp.models import MCPResourceDef, MCPToolDef, TextItem

console = Console()


def print_connected(catalog: Catalog) -> None:
    info = catalog.server_info
    console.print(f"[bold]Connected to {info.name} v{info.version}[/bold]")


def print_tools_table(tools: tuple[MCPToolDef, ...] | list[MCPToolDef]) -> None:
    """Pretty-print the tool catalog as a table."""
    table = Table(title="Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Arguments")

    for tool in tools:
        args = ", ".join(
            f"{key}: {spec.get('type', '?')}" if isinstance(spec, dict) else key
            for key, spec in tool.properties.items()
        )
        table.add_row(tool.name, _truncate(tool.description), args or "-")

    console.print(table)


def print_resources_table(resources: tuple[MCPResourceDef, ...] | list[MCPResourceDef]) -> None:
    """Pretty-print the resource catalog as a table."""
    table = Table(title="Resources")
    table.add_column("Name", style="cyan")
    table.add_column("URI")

    for resource in resources:
        table.add_row(resource.name, resource.uri)

    console.print(table)


def print_content(items: list[TextItem]) -> None:
    """Print text items, as JSON when they parse and verbatim otherwise."""
    for item in items:
        try:
            parsed = json.loads(item.text)
        except json.JSONDecodeError:
            console.print(item.text, markup=False)
        else:
            console.print_json(data=parsed)


def print_event(event: LoopEvent) -> None:
    """Progress line for the tool-calling loop."""
    if event.kind == "tool_call" and event.tool_call is not None:
        console.print(
            f"[bright_blue]Requesting tool call {event.tool_call.name} - "
            f"{escape(json.dumps(event.tool_call.arguments))}[/bright_blue]",
            highlight=False,
        )
    elif event.kind == "tool_result":
        console.print(f"[dim]Tool result: {escape(_truncate(event.text, 120))}[/dim]", highlight=False)
    elif event.kind == "loop_guard":
        console.print("[yellow]Same tool calls repeated; asking for a direct answer.[/yellow]")


def print_outcome(outcome: LoopOutcome) -> None:
    """Print the answer, or the raw tool requests when there is none."""
    if outcome.answer is not None:
        console.print(outcome.answer, markup=False)
        return
    console.print("[yellow]No answer: the model kept requesting tools.[/yellow]")
    console.print_json(data=[tc.model_dump() for tc in outcome.unresolved_tool_calls])


def print_error(label: str, exc: BaseException) -> None:
    console.print(f"[red]{label}:[/red] {escape(str(exc))}", highlight=False)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
