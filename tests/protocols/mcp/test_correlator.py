"""Tests for RpcCorrelator — id allocation and response matching."""

import asyncio
from typing import Any

import pytest

from diymcp.protocols.errors import ConnectionError, RemoteError, RequestTimeoutError
from diymcp.protocols.mcp.correlator import RpcCorrelator
from diymcp.protocols.mcp.transport import StreamTransport


class _QueueTransport:
    """In-memory transport: records what is sent, replays what the test enqueues."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.inbound: asyncio.Queue[dict[str, Any] | BaseException] = asyncio.Queue()

    async def connect(self) -> None:
        pass

    async def send(self, data: dict[str, Any]) -> None:
        self.sent.append(data)

    async def receive(self) -> dict[str, Any]:
        item = await self.inbound.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        pass

    def reply(self, request_id: Any, result: Any = None, **extra: Any) -> None:
        self.inbound.put_nowait({"jsonrpc": "2.0", "id": request_id, "result": result, **extra})


class _EchoTransport(_QueueTransport):
    """Answers every request immediately with ``{"echo": <id>}``."""

    async def send(self, data: dict[str, Any]) -> None:
        await super().send(data)
        if "id" in data:
            self.reply(data["id"], {"echo": data["id"], "method": data["method"]})


async def _wait_until_sent(transport: _QueueTransport, count: int) -> None:
    while len(transport.sent) < count:
        await asyncio.sleep(0)


class TestCall:
    async def test_sequential_calls_match_ids(self) -> None:
        transport = _EchoTransport()
        rpc = RpcCorrelator(transport)

        results = [await rpc.call("tools/list") for _ in range(5)]

        sent_ids = [message["id"] for message in transport.sent]
        assert sent_ids == [1, 2, 3, 4, 5]
        assert [r["echo"] for r in results] == sent_ids
        assert rpc.last_id == 5
        assert rpc.pending_count == 0

    async def test_request_envelope(self) -> None:
        transport = _EchoTransport()
        rpc = RpcCorrelator(transport)

        await rpc.call("tools/call", {"name": "getDrinkNames", "arguments": {}})

        assert transport.sent[0] == {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "tools/call",
            "params": {"name": "getDrinkNames", "arguments": {}},
        }

    async def test_params_default_to_empty_object(self) -> None:
        transport = _EchoTransport()
        rpc = RpcCorrelator(transport)

        await rpc.call("ping")

        assert transport.sent[0]["params"] == {}

    async def test_out_of_order_responses(self) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport)

        first = asyncio.create_task(rpc.call("tools/call", {"name": "a"}))
        second = asyncio.create_task(rpc.call("tools/call", {"name": "b"}))
        await _wait_until_sent(transport, 2)

        transport.reply(2, {"for": "b"})
        transport.reply(1, {"for": "a"})

        assert await first == {"for": "a"}
        assert await second == {"for": "b"}
        assert rpc.pending_count == 0

    async def test_error_envelope_raises_remote_error(self) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport)
        transport.inbound.put_nowait(
            {"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found"}}
        )

        with pytest.raises(RemoteError) as exc_info:
            await rpc.call("bogus")

        assert exc_info.value.code == -32601
        assert exc_info.value.message == "Method not found"
        assert rpc.pending_count == 0

    async def test_unknown_id_is_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport)
        transport.reply(99, {"stale": True})
        transport.reply(1, {"ok": True})

        assert await rpc.call("ping") == {"ok": True}
        assert "unknown id" in caplog.text

    async def test_string_id_is_matched(self) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport)
        transport.reply("1", {"ok": True})

        assert await rpc.call("ping") == {"ok": True}

    async def test_server_notifications_are_ignored(self) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport)
        transport.inbound.put_nowait({"jsonrpc": "2.0", "method": "notifications/tools/list_changed"})
        transport.reply(1, {"ok": True})

        assert await rpc.call("ping") == {"ok": True}

    async def test_invalid_envelope_is_dropped(self) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport)
        transport.inbound.put_nowait({"jsonrpc": "2.0", "id": 1, "error": "not an object"})
        transport.reply(1, {"ok": True})

        assert await rpc.call("ping") == {"ok": True}


class TestMalformedLineResilience:
    async def test_garbage_between_responses(self) -> None:
        reader = asyncio.StreamReader()
        reader.feed_data(b'{"jsonrpc":"2.0","id":1,"result":{"n":1}}\n')
        reader.feed_data(b"{this is not json\n")
        reader.feed_data(b'{"jsonrpc":"2.0","id":2,"result":{"n":2}}\n')

        class _Sink:
            def write(self, data: bytes) -> None:
                pass

            async def drain(self) -> None:
                pass

        rpc = RpcCorrelator(StreamTransport(reader, _Sink()))  # type: ignore[arg-type]

        assert await rpc.call("a") == {"n": 1}
        assert await rpc.call("b") == {"n": 2}


class TestNotify:
    async def test_notify_has_no_id_and_does_not_wait(self) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport)

        await rpc.notify("notifications/initialized")

        assert transport.sent == [
            {"jsonrpc": "2.0", "method": "notifications/initialized", "params": {}}
        ]
        assert rpc.last_id == 0
        assert rpc.pending_count == 0


class TestFailures:
    async def test_timeout(self) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport, timeout=0.05)

        with pytest.raises(RequestTimeoutError) as exc_info:
            await rpc.call("tools/call", {"name": "slow"})

        assert exc_info.value.method == "tools/call"
        assert exc_info.value.request_id == 1
        assert rpc.pending_count == 0

    async def test_per_call_timeout_overrides_default(self) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport)

        with pytest.raises(RequestTimeoutError):
            await rpc.call("ping", timeout=0.05)

    async def test_late_response_after_timeout_is_dropped(self) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport, timeout=0.05)

        with pytest.raises(RequestTimeoutError):
            await rpc.call("slow")

        transport.reply(1, {"late": True})
        transport.reply(2, {"fresh": True})
        assert await rpc.call("next") == {"fresh": True}

    async def test_closed_transport_fails_the_caller(self) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport)
        transport.inbound.put_nowait(ConnectionError("Transport closed"))

        with pytest.raises(ConnectionError):
            await rpc.call("ping")
        assert rpc.pending_count == 0

    async def test_closed_transport_fails_every_waiter(self) -> None:
        transport = _QueueTransport()
        rpc = RpcCorrelator(transport)

        first = asyncio.create_task(rpc.call("a"))
        second = asyncio.create_task(rpc.call("b"))
        await _wait_until_sent(transport, 2)
        transport.inbound.put_nowait(ConnectionError("Transport closed"))

        results = await asyncio.gather(first, second, return_exceptions=True)
        assert all(isinstance(r, ConnectionError) for r in results)
