"""``diymcp ask`` — answer one question with the tool-calling loop."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from diymcp.cli_commands._output import print_error, print_event, print_outcome

if TYPE_CHECKING:
    from diymcp.config import Settings
    from diymcp.core.orchestration.loop import LoopOutcome


@click.command()
@click.argument("question")
@click.option("--quiet", "-q", is_flag=True, help="Print only the answer.")
@click.pass_obj
def ask(settings: Settings, question: str, quiet: bool) -> None:
    """Ask the AI QUESTION, letting it call the server's tools."""
    from diymcp.core.interface.client import ModelClient
    from diymcp.core.interface.errors import CompletionClientError
    from diymcp.core.orchestration.loop import ToolLoop
    from diymcp.protocols.mcp.client import MCPClient

    async def _ask() -> LoopOutcome:
        async with MCPClient(settings.server, request_timeout=settings.request_timeout) as client:
            loop = ToolLoop(
                ModelClient(settings.model),
                client,
                system_prompt=settings.system_prompt,
                max_repeats=settings.max_repeats,
                max_turns=settings.max_turns,
                on_event=None if quiet else print_event,
            )
            return await loop.ask(question)

    try:
        outcome = asyncio.run(_ask())
    except CompletionClientError as exc:
        print_error("AI error", exc)
        sys.exit(1)
    except Exception as exc:
        print_error("Connection error", exc)
        sys.exit(1)

    print_outcome(outcome)
