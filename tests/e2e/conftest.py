"""Shared helpers for E2E integration tests."""

from __future__ import annotations

import asyncio
import socket
from typing import Any
from unittest.mock import MagicMock

from diymcp.protocols.errors import ConnectionError
from diymcp.protocols.mcp.transport import StreamTransport
from diymcp.server import MCPServer


def make_mock_litellm_response(
    content: str = "",
    tool_calls: list[Any] | None = None,
    finish_reason: str = "stop",
    model: str = "openai/gpt-4o-mini",
) -> MagicMock:
    """Create a ``MagicMock`` matching LiteLLM's response structure.

    The mock mirrors ``choices[0].message`` with content, tool_calls,
    plus top-level ``usage`` and ``model`` attributes.
    """
    message = MagicMock()
    message.content = content or None
    message.tool_calls = tool_calls

    choice = MagicMock()
    choice.message = message
    choice.finish_reason = finish_reason

    usage = MagicMock()
    usage.prompt_tokens = 10
    usage.completion_tokens = 20
    usage.total_tokens = 30

    response = MagicMock()
    response.choices = [choice]
    response.usage = usage
    response.model = model

    return response


def make_mock_tool_call(call_id: str, name: str, arguments: str = "{}") -> MagicMock:
    """A LiteLLM ``tool_calls`` entry."""
    tool_call = MagicMock()
    tool_call.id = call_id
    tool_call.function.name = name
    tool_call.function.arguments = arguments
    return tool_call


class LoopbackTransport:
    """Client-side transport wired straight into an :class:`MCPServer`.

    Every request is handed to ``server.handle``; replies are queued for
    ``receive``.
    """

    def __init__(self, server: MCPServer) -> None:
        self.server = server
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._inbound: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    async def connect(self) -> None:
        pass

    async def send(self, data: dict[str, Any]) -> None:
        self.sent.append(data)
        reply = await self.server.handle(data)
        if reply is not None:
            self._inbound.put_nowait(reply)

    async def receive(self) -> dict[str, Any]:
        if self.closed:
            raise ConnectionError("Transport closed")
        return await self._inbound.get()

    async def close(self) -> None:
        self.closed = True

    def methods(self) -> list[str]:
        return [m["method"] for m in self.sent]


async def socket_transports() -> tuple[StreamTransport, StreamTransport]:
    """Two StreamTransports joined by a connected socket pair."""
    client_sock, server_sock = socket.socketpair()
    client_reader, client_writer = await asyncio.open_connection(sock=client_sock)
    server_reader, server_writer = await asyncio.open_connection(sock=server_sock)
    return (
        StreamTransport(client_reader, client_writer),
        StreamTransport(server_reader, server_writer),
    )
