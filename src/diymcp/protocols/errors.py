"""Shared error types for the protocol layer."""

from __future__ import annotations

from typing import Any


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""


class ConnectionError(ProtocolError):
    """Failed to connect to the tool server, or the connection was lost."""


class TransportParseError(ProtocolError):
    """An inbound line was not a JSON object.

    Never propagated out of the transport: the line is logged and skipped.
    """

    def __init__(self, line: str, detail: str = "") -> None:
        self.line = line
        self.detail = detail
        super().__init__(f"Malformed line: {line!r}" + (f" ({detail})" if detail else ""))


class HandshakeError(ProtocolError):
    """The bootstrap sequence failed before the catalog was ready."""

    def __init__(self, step: str, detail: str = "") -> None:
        self.step = step
        self.detail = detail
        super().__init__(f"Handshake failed at {step}" + (f": {detail}" if detail else ""))


class RemoteError(ProtocolError):
    """The server answered a request with a JSON-RPC error envelope."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"Remote error {code}: {message}")


class RemoteToolError(RemoteError):
    """A ``tools/call`` request came back as an error."""

    def __init__(self, name: str, code: int, message: str, data: Any = None) -> None:
        self.name = name
        super().__init__(code, message, data)


class RequestTimeoutError(ProtocolError):
    """No response arrived for a request within its timeout."""

    def __init__(self, method: str, request_id: int, timeout: float) -> None:
        self.method = method
        self.request_id = request_id
        self.timeout = timeout
        super().__init__(f"Request {request_id} ({method}) timed out after {timeout}s")


class ToolNotFoundError(ProtocolError):
    """Requested tool does not exist in the server's catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool not found: {name}")
