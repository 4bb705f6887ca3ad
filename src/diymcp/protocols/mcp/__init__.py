"""MCP protocol — line-delimited JSON-RPC tool client."""

from diymcp.protocols.mcp.catalog import Catalog, CatalogBootstrap, SessionState
from diymcp.protocols.mcp.client import MCPClient
from diymcp.protocols.mcp.correlator import PendingRequest, RpcCorrelator
from diymcp.protocols.mcp.models import (
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    MCPResourceDef,
    MCPToolDef,
)
from diymcp.protocols.mcp.transport import LineTransport, StdioTransport, StreamTransport

__all__ = [
    "Catalog",
    "CatalogBootstrap",
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "LineTransport",
    "MCPClient",
    "MCPResourceDef",
    "MCPToolDef",
    "PendingRequest",
    "RpcCorrelator",
    "SessionState",
    "StdioTransport",
    "StreamTransport",
]
