"""Capability catalog — the handshake and the tool/resource listing.

The bootstrap is a linear state machine with no retries::

    UNINITIALIZED -> INITIALIZED -> READY_TO_LIST -> READY

Any failure before ``READY`` moves to ``FAILED`` and raises
:class:`HandshakeError`; a session cannot proceed without a catalog.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, ValidationError

from diymcp.protocols.errors import HandshakeError, ProtocolError
from diymcp.protocols.mcp.models import (
    PROTOCOL_VERSION,
    InitializeResult,
    MCPResourceDef,
    MCPToolDef,
    ServerCapabilities,
    ServerInfo,
)

if TYPE_CHECKING:
    from diymcp.protocols.mcp.correlator import RpcCorrelator

logger = logging.getLogger(__name__)

_LIST_PARAMS: dict[str, Any] = {"_meta": {"progressToken": 1}}


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    READY_TO_LIST = "ready-to-list"
    READY = "ready"
    FAILED = "failed"


class Catalog(BaseModel):
    """Immutable snapshot of what the server offers."""

    model_config = ConfigDict(frozen=True)

    server_info: ServerInfo = ServerInfo()
    capabilities: ServerCapabilities = ServerCapabilities()
    protocol_version: str = PROTOCOL_VERSION
    tools: tuple[MCPToolDef, ...] = ()
    resources: tuple[MCPResourceDef, ...] = ()

    def tool(self, name: str) -> MCPToolDef | None:
        """Look up a tool by name."""
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None

    def resource(self, uri: str) -> MCPResourceDef | None:
        """Look up a resource by URI."""
        for resource in self.resources:
            if resource.uri == uri:
                return resource
        return None

    def function_schemas(self) -> list[dict[str, Any]]:
        """Return the tools as OpenAI-compatible function schemas."""
        return [to_function_schema(tool) for tool in self.tools]


def to_function_schema(tool_def: MCPToolDef) -> dict[str, Any]:
    """Convert an MCPToolDef to an OpenAI-compatible function schema."""
    parameters: dict[str, Any] = {"type": "object", "properties": {}}
    parameters.update(tool_def.input_schema)
    parameters["type"] = "object"
    return {
        "type": "function",
        "function": {
            "name": tool_def.name,
            "description": tool_def.description,
            "parameters": parameters,
        },
    }


class CatalogBootstrap:
    """Runs the handshake once and builds the :class:`Catalog`.

    Usage::

        bootstrap = CatalogBootstrap(rpc, client_name="diymcp", client_version="0.1.0")
        catalog = await bootstrap.run()
    """

    def __init__(
        self,
        rpc: RpcCorrelator,
        *,
        client_name: str,
        client_version: str,
        protocol_version: str = PROTOCOL_VERSION,
    ) -> None:
        self._rpc = rpc
        self._client_info = {"name": client_name, "version": client_version}
        self._protocol_version = protocol_version
        self.state = SessionState.UNINITIALIZED

    async def run(self) -> Catalog:
        if self.state is not SessionState.UNINITIALIZED:
            msg = f"Bootstrap already ran (state: {self.state.value})"
            raise RuntimeError(msg)

        step = "initialize"
        try:
            init = await self._initialize()
            self.state = SessionState.INITIALIZED

            step = "notifications/initialized"
            await self._rpc.notify("notifications/initialized")
            self.state = SessionState.READY_TO_LIST

            step = "tools/list"
            tools = await self._list_tools() if init.capabilities.tools is not None else []

            step = "resources/list"
            resources = (
                await self._list_resources() if init.capabilities.resources is not None else []
            )
        except (ProtocolError, ValidationError, AttributeError) as exc:
            self.state = SessionState.FAILED
            raise HandshakeError(step, str(exc)) from exc

        self.state = SessionState.READY
        logger.info(
            "Connected to %s v%s (%d tools, %d resources)",
            init.server_info.name,
            init.server_info.version,
            len(tools),
            len(resources),
        )
        return Catalog(
            server_info=init.server_info,
            capabilities=init.capabilities,
            protocol_version=init.protocol_version,
            tools=tuple(tools),
            resources=tuple(resources),
        )

    async def _initialize(self) -> InitializeResult:
        result = await self._rpc.call(
            "initialize",
            {
                "protocolVersion": self._protocol_version,
                "capabilities": {},
                "clientInfo": self._client_info,
            },
        )
        return InitializeResult.model_validate(result or {})

    async def _list_tools(self) -> list[MCPToolDef]:
        result = await self._rpc.call("tools/list", _LIST_PARAMS)
        raw_tools = (result or {}).get("tools", [])
        return [MCPToolDef.model_validate(raw) for raw in raw_tools]

    async def _list_resources(self) -> list[MCPResourceDef]:
        result = await self._rpc.call("resources/list", _LIST_PARAMS)
        raw_resources = (result or {}).get("resources", [])
        return [MCPResourceDef.model_validate(raw) for raw in raw_resources]
