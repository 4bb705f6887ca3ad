"""Protocol layer — line-delimited JSON-RPC tool servers."""

from diymcp.protocols.errors import (
    ConnectionError,
    HandshakeError,
    ProtocolError,
    RemoteError,
    RemoteToolError,
    RequestTimeoutError,
    ToolNotFoundError,
    TransportParseError,
)
from diymcp.protocols.provider import ToolProvider

__all__ = [
    "ConnectionError",
    "HandshakeError",
    "ProtocolError",
    "RemoteError",
    "RemoteToolError",
    "RequestTimeoutError",
    "ToolNotFoundError",
    "ToolProvider",
    "TransportParseError",
]
