"""MCP models — JSON-RPC 2.0 envelopes, catalog entries and call results.

Implements the message format used for the handshake (``initialize``),
tool discovery (``tools/list``), execution (``tools/call``) and resource
access (``resources/list``, ``resources/read``).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PROTOCOL_VERSION = "2025-03-26"

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message."""

    jsonrpc: str = "2.0"
    id: int
    method: str
    params: dict[str, Any] = {}


class JsonRpcNotification(BaseModel):
    """A JSON-RPC 2.0 notification — a request without an ``id``."""

    jsonrpc: str = "2.0"
    method: str
    params: dict[str, Any] = {}


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message."""

    jsonrpc: str = "2.0"
    id: int | str | None = None
    result: Any = None
    error: JsonRpcError | None = None

    def to_wire(self) -> dict[str, Any]:
        """Dump with exactly one of ``result`` / ``error``."""
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            data["error"] = self.error.model_dump(exclude_none=True)
        else:
            data["result"] = self.result if self.result is not None else {}
        return data


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class ServerInfo(BaseModel):
    """Identity reported by the server in the ``initialize`` result."""

    name: str = "unknown"
    version: str = ""


class ServerCapabilities(BaseModel):
    """Capabilities declared by the server; absent keys mean unsupported."""

    model_config = ConfigDict(extra="allow")

    tools: Any = None
    resources: Any = None


class InitializeResult(BaseModel):
    """Result of the ``initialize`` request."""

    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: ServerCapabilities = Field(default_factory=ServerCapabilities)
    server_info: ServerInfo = Field(default_factory=ServerInfo, alias="serverInfo")


class MCPToolDef(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")

    @property
    def properties(self) -> dict[str, Any]:
        """The ``properties`` mapping of the input schema (may be empty)."""
        props = self.input_schema.get("properties") or {}
        return dict(props)


class MCPResourceDef(BaseModel):
    """A resource definition as returned by ``resources/list``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    uri: str
    name: str
    description: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")


class TextItem(BaseModel):
    """One entry of a ``content`` (tools) or ``contents`` (resources) list."""

    model_config = ConfigDict(extra="allow")

    type: str = "text"
    uri: str | None = None
    text: str = ""


class ToolCallResult(BaseModel):
    """Result of ``tools/call``."""

    model_config = ConfigDict(populate_by_name=True)

    content: list[TextItem] = []
    is_error: bool = Field(default=False, alias="isError")

    @property
    def first_text(self) -> str:
        """Text of the first content item, or ``""`` when there is none."""
        return self.content[0].text if self.content else ""


class ResourceReadResult(BaseModel):
    """Result of ``resources/read``."""

    contents: list[TextItem] = []
