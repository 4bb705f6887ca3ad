"""RpcCorrelator — request/response matching over a :class:`LineTransport`.

Every request gets the next integer id and a :class:`PendingRequest` entry
keyed by that id.  There is no background reader task: whichever caller is
waiting pumps the transport under a read lock and hands each inbound
response to the pending entry with the matching id, so several requests may
be in flight at once and replies may arrive in any order.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from diymcp.protocols.errors import ConnectionError, RemoteError, RequestTimeoutError
from diymcp.protocols.mcp.models import JsonRpcNotification, JsonRpcRequest, JsonRpcResponse

if TYPE_CHECKING:
    from diymcp.protocols.mcp.transport import LineTransport

logger = logging.getLogger(__name__)


@dataclass
class PendingRequest:
    """An issued request still waiting for its response."""

    id: int
    method: str
    future: asyncio.Future[JsonRpcResponse]
    issued_at: float = field(default_factory=time.monotonic)


class RpcCorrelator:
    """Exposes ``call`` / ``notify`` on top of a line transport.

    Usage::

        rpc = RpcCorrelator(transport)
        result = await rpc.call("tools/list")
        await rpc.notify("notifications/initialized")
    """

    def __init__(self, transport: LineTransport, *, timeout: float | None = None) -> None:
        self._transport = transport
        self._timeout = timeout
        self._pending: dict[int, PendingRequest] = {}
        self._last_id = 0
        self._read_lock = asyncio.Lock()

    @property
    def last_id(self) -> int:
        """The most recently allocated request id (0 before the first call)."""
        return self._last_id

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Send a request and return the ``result`` of its response.

        Raises:
            RemoteError: The response carried an ``error`` object.
            RequestTimeoutError: No response within *timeout* seconds.
            ConnectionError: The transport closed before the response arrived.
        """
        self._last_id += 1
        request_id = self._last_id
        pending = PendingRequest(
            id=request_id,
            method=method,
            future=asyncio.get_running_loop().create_future(),
        )
        self._pending[request_id] = pending

        request = JsonRpcRequest(id=request_id, method=method, params=params or {})
        effective_timeout = timeout if timeout is not None else self._timeout
        try:
            await self._transport.send(request.model_dump())
            if effective_timeout is None:
                response = await self._wait_for(pending)
            else:
                try:
                    response = await asyncio.wait_for(self._wait_for(pending), effective_timeout)
                except TimeoutError:
                    raise RequestTimeoutError(method, request_id, effective_timeout) from None
        finally:
            self._pending.pop(request_id, None)

        if response.error is not None:
            raise RemoteError(response.error.code, response.error.message, response.error.data)
        return response.result

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification; no response is expected."""
        notification = JsonRpcNotification(method=method, params=params or {})
        await self._transport.send(notification.model_dump())

    async def _wait_for(self, pending: PendingRequest) -> JsonRpcResponse:
        """Pump inbound messages until *pending* is resolved."""
        while not pending.future.done():
            async with self._read_lock:
                if pending.future.done():
                    break
                try:
                    raw = await self._transport.receive()
                except ConnectionError as exc:
                    self._fail_all(exc, skip=pending.id)
                    raise
                self._dispatch(raw)
        return pending.future.result()

    def _dispatch(self, raw: dict[str, Any]) -> None:
        """Route one inbound envelope to its pending request."""
        if "method" in raw and "result" not in raw and "error" not in raw:
            logger.debug("Ignoring server-initiated message: %s", raw.get("method"))
            return

        try:
            response = JsonRpcResponse.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Dropping invalid response envelope %r: %s", raw, exc)
            return

        request_id = _as_int(response.id)
        pending = self._pending.get(request_id) if request_id is not None else None
        if pending is None or pending.future.done():
            logger.warning("Dropping response with unknown id %r", response.id)
            return

        elapsed = time.monotonic() - pending.issued_at
        logger.debug("Response %d (%s) after %.3fs", pending.id, pending.method, elapsed)
        pending.future.set_result(response)

    def _fail_all(self, exc: BaseException, *, skip: int) -> None:
        for pending in self._pending.values():
            if pending.id != skip and not pending.future.done():
                pending.future.set_exception(exc)


def _as_int(value: int | str | None) -> int | None:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None
