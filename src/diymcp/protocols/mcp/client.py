"""MCPClient — connects to a tool server and exposes its catalog.

Owns the transport, the :class:`RpcCorrelator` and the :class:`Catalog`
built by the bootstrap handshake; offers ``tools/call``,
``resources/read`` and ``ping`` on top.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from diymcp import __version__
from diymcp.core.interface.models import ToolResult
from diymcp.protocols.errors import (
    ConnectionError,
    RemoteError,
    RemoteToolError,
    ToolNotFoundError,
)
from diymcp.protocols.mcp.catalog import Catalog, CatalogBootstrap, SessionState
from diymcp.protocols.mcp.correlator import RpcCorrelator
from diymcp.protocols.mcp.models import INTERNAL_ERROR, JsonRpcError, ResourceReadResult, ToolCallResult
from diymcp.protocols.mcp.transport import LineTransport, StdioTransport
from diymcp.utils.telemetry import ATTR_TOOL_ERROR, ATTR_TOOL_NAME, get_tracer

if TYPE_CHECKING:
    from diymcp.config import ServerSettings

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

CLIENT_NAME = "diymcp"


class MCPClient:
    """Async context manager that connects to a tool server.

    Satisfies the :class:`~diymcp.protocols.provider.ToolProvider` protocol.

    Usage::

        async with MCPClient(ServerSettings(command="python -m diymcp.server.coffee_shop")) as client:
            print(client.catalog.tools)
            result = await client.call_tool("getDrinkNames", {})
    """

    def __init__(
        self,
        server: ServerSettings | None = None,
        *,
        transport: LineTransport | None = None,
        request_timeout: float | None = None,
    ) -> None:
        if server is None and transport is None:
            msg = "MCPClient needs server settings or a transport"
            raise ValueError(msg)
        self._server = server
        self._transport = transport
        self._request_timeout = request_timeout
        self._rpc: RpcCorrelator | None = None
        self._catalog: Catalog | None = None
        self.state = SessionState.UNINITIALIZED

    async def __aenter__(self) -> MCPClient:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    @property
    def catalog(self) -> Catalog:
        if self._catalog is None:
            msg = "Client not connected"
            raise RuntimeError(msg)
        return self._catalog

    @property
    def rpc(self) -> RpcCorrelator:
        if self._rpc is None:
            msg = "Client not connected"
            raise RuntimeError(msg)
        return self._rpc

    async def connect(self) -> Catalog:
        """Create the transport, connect, and run the bootstrap handshake.

        Raises:
            ConnectionError: The server process could not be started.
            HandshakeError: The handshake or catalog listing failed.
        """
        if self._transport is None:
            self._transport = self._create_transport()
        try:
            await self._transport.connect()
        except (OSError, ValueError) as exc:
            raise ConnectionError(str(exc)) from exc

        self._rpc = RpcCorrelator(self._transport, timeout=self._request_timeout)
        bootstrap = CatalogBootstrap(self._rpc, client_name=CLIENT_NAME, client_version=__version__)
        try:
            self._catalog = await bootstrap.run()
        except BaseException:
            await self.close()
            raise
        finally:
            self.state = bootstrap.state
        return self._catalog

    async def close(self) -> None:
        """Close the underlying transport."""
        if self._transport is not None:
            await self._transport.close()
        self._rpc = None

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolCallResult:
        """Send ``tools/call`` for the named tool.

        Raises:
            ToolNotFoundError: The tool is not in the catalog.
            RemoteToolError: The server answered with an error or with a
                result that is not a valid ``tools/call`` result.
        """
        if self.catalog.tool(name) is None:
            raise ToolNotFoundError(name)

        with _tracer.start_as_current_span("diymcp.tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            logger.debug("tools/call %s %s", name, arguments)
            try:
                result = await self.rpc.call(
                    "tools/call",
                    {"name": name, "arguments": arguments or {}},
                )
            except RemoteError as exc:
                span.set_attribute(ATTR_TOOL_ERROR, exc.message)
                raise RemoteToolError(name, exc.code, exc.message, exc.data) from exc

            embedded = _embedded_error(result)
            if embedded is not None:
                span.set_attribute(ATTR_TOOL_ERROR, embedded.message)
                raise RemoteToolError(name, embedded.code, embedded.message, embedded.data)

            try:
                call_result = ToolCallResult.model_validate(result or {})
            except ValidationError as exc:
                span.set_attribute(ATTR_TOOL_ERROR, "malformed result")
                raise RemoteToolError(name, INTERNAL_ERROR, f"malformed tools/call result: {exc}") from exc

            if call_result.is_error:
                span.set_attribute(ATTR_TOOL_ERROR, call_result.first_text)
                raise RemoteToolError(name, 0, call_result.first_text or "tool reported an error")
            return call_result

    async def execute_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Call a tool and wrap the first text item as a :class:`ToolResult`."""
        call_result = await self.call_tool(name, arguments)
        return ToolResult.from_text(tool_call_id="", text=call_result.first_text)

    def tool_schemas(self) -> list[dict[str, Any]]:
        """Return the catalog's tools as OpenAI function schemas."""
        return self.catalog.function_schemas()

    async def read_resource(self, uri: str) -> ResourceReadResult:
        """Send ``resources/read`` for *uri*."""
        result = await self.rpc.call("resources/read", {"uri": uri})
        embedded = _embedded_error(result)
        if embedded is not None:
            raise RemoteError(embedded.code, embedded.message, embedded.data)
        try:
            return ResourceReadResult.model_validate(result or {})
        except ValidationError as exc:
            raise RemoteError(INTERNAL_ERROR, f"malformed resources/read result: {exc}") from exc

    async def ping(self) -> None:
        """Send ``ping``; raises if the server does not answer."""
        await self.rpc.call("ping")

    def _create_transport(self) -> LineTransport:
        """Build the stdio transport from the server settings."""
        assert self._server is not None
        if not self._server.command:
            msg = "Server settings must specify 'command'"
            raise ValueError(msg)
        env = {**os.environ, **self._server.env} if self._server.env else None
        return StdioTransport(command=self._server.command, env=env)


def _embedded_error(result: Any) -> JsonRpcError | None:
    """Some servers report failures as ``{"result": {"error": {...}}}``."""
    if not isinstance(result, dict):
        return None
    error = result.get("error")
    if not isinstance(error, dict) or "message" not in error:
        return None
    code = error.get("code")
    if not isinstance(code, int) or isinstance(code, bool):
        code = INTERNAL_ERROR
    return JsonRpcError(code=code, message=str(error["message"]), data=error.get("data"))
