"""MCP transports — newline-delimited JSON over byte streams.

Each transport satisfies the :class:`LineTransport` protocol, providing
``connect``, ``send``, ``receive``, and ``close`` methods.  One JSON
document per line in both directions.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shlex
from typing import Any, Protocol, runtime_checkable

from diymcp.protocols.errors import ConnectionError, TransportParseError

logger = logging.getLogger(__name__)


@runtime_checkable
class LineTransport(Protocol):
    """Abstract transport for line-delimited JSON-RPC communication."""

    async def connect(self) -> None: ...
    async def send(self, data: dict[str, Any]) -> None: ...
    async def receive(self) -> dict[str, Any]: ...
    async def close(self) -> None: ...


def encode_line(data: dict[str, Any]) -> bytes:
    """Serialize one document as a single ``\\n``-terminated UTF-8 line."""
    return (json.dumps(data, ensure_ascii=False, separators=(",", ":")) + "\n").encode("utf-8")


def decode_line(raw: bytes) -> dict[str, Any]:
    """Parse one line into a JSON object.

    Raises:
        TransportParseError: If the line is not valid JSON or not an object.
    """
    text = raw.decode("utf-8", errors="replace").strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TransportParseError(text, str(exc)) from exc
    if not isinstance(data, dict):
        raise TransportParseError(text, "expected a JSON object")
    return data


class StreamTransport:
    """Line transport over an already-open ``StreamReader``/``StreamWriter`` pair.

    Writes are serialized with a lock so two concurrent ``send`` calls never
    interleave partial lines.  ``receive`` skips blank and malformed lines.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader | None = None,
        writer: asyncio.StreamWriter | None = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._write_lock = asyncio.Lock()

    async def connect(self) -> None:
        """Nothing to do; the streams are supplied by the caller."""
        if self._reader is None or self._writer is None:
            msg = "StreamTransport requires a reader and a writer"
            raise RuntimeError(msg)

    async def send(self, data: dict[str, Any]) -> None:
        """Write a JSON line and wait for the buffer to drain."""
        if self._writer is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        line = encode_line(data)
        async with self._write_lock:
            self._writer.write(line)
            try:
                await self._writer.drain()
            except (BrokenPipeError, ConnectionResetError) as exc:
                raise ConnectionError(f"Transport closed: {exc}") from exc

    async def receive(self) -> dict[str, Any]:
        """Block until the next complete, well-formed JSON line arrives."""
        if self._reader is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        while True:
            line = await self._reader.readline()
            if not line:
                msg = "Transport closed"
                raise ConnectionError(msg)
            if not line.strip():
                continue
            try:
                return decode_line(line)
            except TransportParseError as exc:
                logger.warning("Skipping inbound line: %s", exc)

    async def close(self) -> None:
        """Close the writer side."""
        if self._writer is not None:
            self._writer.close()
            self._writer = None
        self._reader = None


class StdioTransport(StreamTransport):
    """Communicates with a tool server via subprocess stdin/stdout.

    The server's stderr is inherited so its diagnostics reach the terminal.
    """

    def __init__(self, command: str, env: dict[str, str] | None = None) -> None:
        super().__init__()
        self._command = command
        self._env = env
        self._process: asyncio.subprocess.Process | None = None

    async def connect(self) -> None:
        """Launch the subprocess."""
        parts = shlex.split(self._command)
        if not parts:
            msg = "Empty server command"
            raise ValueError(msg)
        self._process = await asyncio.create_subprocess_exec(
            *parts,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            env=self._env,
        )
        self._reader = self._process.stdout
        self._writer = self._process.stdin  # type: ignore[assignment]
        logger.debug("Started tool server %r (pid %s)", self._command, self._process.pid)

    async def close(self) -> None:
        """Close stdin and terminate the subprocess."""
        if self._process is not None:
            if self._process.stdin:
                self._process.stdin.close()
            if self._process.returncode is None:
                try:
                    self._process.terminate()
                except ProcessLookupError:
                    pass
            await self._process.wait()
            self._process = None
        self._reader = None
        self._writer = None
