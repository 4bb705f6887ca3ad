"""``diymcp chat`` — interactive menu over one server session."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Any

import click

from diymcp.cli_commands._output import (
    console,
    print_connected,
    print_content,
    print_error,
    print_event,
    print_outcome,
)

if TYPE_CHECKING:
    from diymcp.config import Settings
    from diymcp.core.interface.models import ConversationHistory

DEFAULT_QUESTION = "What kinds of drinks do you have?"

ACTION_TOOL = "Run a tool"
ACTION_RESOURCE = "Get a resource"
ACTION_AI = "Ask the AI"


@click.command()
@click.option(
    "--keep-history/--no-keep-history",
    default=None,
    help="Carry the conversation over from one question to the next.",
)
@click.pass_obj
def chat(settings: Settings, keep_history: bool | None) -> None:
    """Connect to the server and pick actions from a menu until Ctrl-C."""
    settings = settings.with_overrides(keep_history=keep_history)
    try:
        asyncio.run(_chat(settings))
    except (click.Abort, KeyboardInterrupt, EOFError):
        console.print()
        sys.exit(0)
    except Exception as exc:
        print_error("Connection error", exc)
        sys.exit(1)


async def _chat(settings: Settings) -> None:
    from diymcp.core.interface.client import ModelClient
    from diymcp.core.interface.errors import CompletionClientError
    from diymcp.core.orchestration.loop import ToolLoop
    from diymcp.protocols.errors import RemoteError, RequestTimeoutError, ToolNotFoundError
    from diymcp.protocols.mcp.client import MCPClient

    async with MCPClient(settings.server, request_timeout=settings.request_timeout) as client:
        catalog = client.catalog
        print_connected(catalog)

        tool_loop = ToolLoop(
            ModelClient(settings.model),
            client,
            system_prompt=settings.system_prompt,
            max_repeats=settings.max_repeats,
            max_turns=settings.max_turns,
            on_event=print_event,
        )
        history: ConversationHistory | None = None

        actions = [ACTION_AI]
        if catalog.resources:
            actions.insert(0, ACTION_RESOURCE)
        if catalog.tools:
            actions.insert(0, ACTION_TOOL)

        while True:
            action = await _choose("What would you like to do?", actions)

            if action == ACTION_TOOL:
                tool = catalog.tools[await _choose_index("Select a tool.", [t.name for t in catalog.tools])]
                arguments: dict[str, Any] = {}
                for key, schema in tool.properties.items():
                    if isinstance(schema, dict) and schema.get("type") == "string":
                        arguments[key] = await _prompt(key, default="")
                try:
                    result = await client.call_tool(tool.name, arguments)
                except (RemoteError, ToolNotFoundError, RequestTimeoutError) as exc:
                    print_error("Tool error", exc)
                    continue
                print_content(result.content)

            elif action == ACTION_RESOURCE:
                names = [r.name for r in catalog.resources]
                resource = catalog.resources[await _choose_index("Select a resource.", names)]
                try:
                    contents = await client.read_resource(resource.uri)
                except (RemoteError, RequestTimeoutError) as exc:
                    print_error("Resource error", exc)
                    continue
                print_content(contents.contents)

            else:
                question = await _prompt("What would you like to ask?", default=DEFAULT_QUESTION)
                try:
                    outcome = await tool_loop.ask(question, history=history)
                except CompletionClientError as exc:
                    print_error("AI error", exc)
                    continue
                print_outcome(outcome)
                if settings.keep_history:
                    history = outcome.conversation


async def _choose(message: str, options: list[str]) -> str:
    return options[await _choose_index(message, options)]


async def _choose_index(message: str, options: list[str]) -> int:
    """Numbered menu; returns the zero-based index of the pick."""
    console.print(f"[bold]{message}[/bold]")
    for number, label in enumerate(options, start=1):
        console.print(f"  {number}. {label}", markup=False)
    choice = await _prompt("Choice", default="1", type=click.IntRange(1, len(options)))
    return int(choice) - 1


async def _prompt(text: str, **kwargs: Any) -> Any:
    # click.prompt blocks on stdin, so keep it off the event loop.
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: click.prompt(text, **kwargs))
