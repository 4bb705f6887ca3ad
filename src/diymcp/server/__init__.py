"""MCPServer — a minimal line-delimited JSON-RPC tool server.

Serves one client over stdin/stdout, one request at a time.  Tools and
resources are plain functions returning text::

    server = MCPServer("Coffee Shop Server", "1.0.0")

    @server.tool("getDrinkNames", "Get the names of the drinks in the shop")
    def get_drink_names(arguments):
        return json.dumps({"names": [...]})

    asyncio.run(server.serve_stdio())
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from diymcp.protocols.errors import ConnectionError
from diymcp.protocols.mcp.models import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    JsonRpcError,
    JsonRpcResponse,
)
from diymcp.protocols.mcp.transport import LineTransport, StreamTransport

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], str | Awaitable[str]]
ResourceHandler = Callable[[], str | Awaitable[str]]


class MethodError(Exception):
    """Raised by a method handler to answer with a JSON-RPC error."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class _Tool:
    name: str
    description: str
    input_schema: dict[str, Any]
    handler: ToolHandler


@dataclass(frozen=True)
class _Resource:
    uri: str
    name: str
    handler: ResourceHandler


class MCPServer:
    """Registry of tools/resources plus the request dispatch table."""

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        self._tools: dict[str, _Tool] = {}
        self._resources: dict[str, _Resource] = {}
        self._methods: dict[str, Callable[[dict[str, Any]], Awaitable[Any]]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/read": self._read_resource,
        }

    def tool(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any] | None = None,
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator registering *fn(arguments) -> str* as a tool."""

        def decorator(fn: ToolHandler) -> ToolHandler:
            schema = input_schema or {"type": "object", "properties": {}}
            self._tools[name] = _Tool(name, description, schema, fn)
            return fn

        return decorator

    def resource(self, uri: str, name: str) -> Callable[[ResourceHandler], ResourceHandler]:
        """Decorator registering *fn() -> str* as the resource at *uri*."""

        def decorator(fn: ResourceHandler) -> ResourceHandler:
            self._resources[uri] = _Resource(uri, name, fn)
            return fn

        return decorator

    async def handle(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Process one inbound envelope; return the reply, or ``None`` for notifications."""
        method = message.get("method")
        request_id = message.get("id")
        is_notification = "id" not in message or request_id is None

        if not isinstance(method, str):
            logger.warning("Ignoring message without a method: %r", message)
            return None

        handler = self._methods.get(method)
        if is_notification:
            logger.debug("Notification %s", method)
            return None
        if handler is None:
            return _error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        params = message.get("params") or {}
        try:
            result = await handler(params)
        except MethodError as exc:
            return _error(request_id, exc.code, exc.message)
        except Exception as exc:
            logger.exception("Handler for %s failed", method)
            return _error(request_id, INTERNAL_ERROR, str(exc))
        return JsonRpcResponse(id=request_id, result=result).to_wire()

    async def serve(self, transport: LineTransport) -> None:
        """Answer requests until the client closes the stream."""
        while True:
            try:
                message = await transport.receive()
            except ConnectionError:
                logger.debug("Client closed the connection")
                return
            reply = await self.handle(message)
            if reply is not None:
                await transport.send(reply)

    async def serve_stdio(self) -> None:
        """Serve over this process's stdin/stdout."""
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
        write_transport, write_protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, sys.stdout
        )
        writer = asyncio.StreamWriter(write_transport, write_protocol, reader, loop)
        await self.serve(StreamTransport(reader, writer))

    # -- method handlers ---------------------------------------------------

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client = params.get("clientInfo") or {}
        logger.info("Client %s %s connected", client.get("name", "?"), client.get("version", ""))
        capabilities: dict[str, Any] = {}
        if self._tools:
            capabilities["tools"] = {"listChanged": True}
        if self._resources:
            capabilities["resources"] = {"listChanged": True}
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": capabilities,
            "serverInfo": {"name": self.name, "version": self.version},
        }

    async def _ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return {
            "tools": [
                {"name": t.name, "description": t.description, "inputSchema": t.input_schema}
                for t in self._tools.values()
            ]
        }

    async def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        tool = self._tools.get(name) if isinstance(name, str) else None
        if tool is None:
            raise MethodError(INVALID_PARAMS, f"MCP error -32602: Tool {name} not found")
        text = await _maybe_await(tool.handler(params.get("arguments") or {}))
        return {"content": [{"type": "text", "text": text}]}

    async def _list_resources(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"resources": [{"uri": r.uri, "name": r.name} for r in self._resources.values()]}

    async def _read_resource(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = params.get("uri")
        resource = self._resources.get(uri) if isinstance(uri, str) else None
        if resource is None:
            raise MethodError(INVALID_PARAMS, "Resource not found")
        text = await _maybe_await(resource.handler())
        return {"contents": [{"uri": resource.uri, "text": text}]}


async def _maybe_await(value: str | Awaitable[str]) -> str:
    if inspect.isawaitable(value):
        return await value
    return value


def _error(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return JsonRpcResponse(id=request_id, error=JsonRpcError(code=code, message=message)).to_wire()
