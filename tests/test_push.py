from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import aiohttp
import pytest

from takmap._push import ConnectionStatus, PushChannel, decode_push_frame
from takmap.exceptions import TakMapAuthenticationError, TakMapError, TakMapPushError


@dataclass
class _Msg:
    type: aiohttp.WSMsgType
    data: Any = None


class _FakeWs:
    """Yields queued frames until a ``None`` sentinel closes the stream."""

    def __init__(self, *frames: str) -> None:
        self.queue: asyncio.Queue[_Msg | None] = asyncio.Queue()
        for frame in frames:
            self.queue.put_nowait(_Msg(aiohttp.WSMsgType.TEXT, frame))
        self.closed = False

    def finish(self) -> None:
        self.queue.put_nowait(None)

    def __aiter__(self) -> _FakeWs:
        return self

    async def __anext__(self) -> _Msg:
        msg = await self.queue.get()
        if msg is None:
            raise StopAsyncIteration
        return msg

    async def close(self) -> bool:
        self.closed = True
        return True

    def exception(self) -> BaseException | None:
        return None


async def _until(predicate: Any, timeout: float = 1.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


def test_decode_push_frame() -> None:
    assert decode_push_frame('{"type": "chat"}') == {"type": "chat"}
    assert decode_push_frame("[1, 2]") is None
    assert decode_push_frame("not json") is None


@pytest.mark.asyncio
async def test_frames_are_dispatched_after_open() -> None:
    ws = _FakeWs('{"type": "unit"}', "garbage", '{"type": "chat"}')
    order: list[str] = []
    statuses: list[ConnectionStatus] = []

    async def connect() -> _FakeWs:
        return ws

    async def on_open() -> None:
        order.append("open")

    async def on_message(payload: dict[str, Any]) -> None:
        order.append(payload["type"])

    channel = PushChannel(
        connect,  # type: ignore[arg-type]
        on_message=on_message,
        on_open=on_open,
        on_status=statuses.append,
        reconnect_delay=10.0,
    )
    channel.start()
    await _until(lambda: len(order) == 3)

    assert order == ["open", "unit", "chat"]
    assert channel.is_connected
    assert statuses == [ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED]

    await channel.stop()
    assert ws.closed
    assert channel.status == ConnectionStatus.DISCONNECTED
    assert not channel.is_running


@pytest.mark.asyncio
async def test_reconnects_after_close_and_after_connect_failure() -> None:
    sockets = [_FakeWs(), None, _FakeWs()]
    opens = 0

    async def connect() -> _FakeWs:
        ws = sockets.pop(0)
        if ws is None:
            raise TakMapPushError("refused")
        return ws

    async def on_open() -> None:
        nonlocal opens
        opens += 1

    async def on_message(payload: dict[str, Any]) -> None:
        pass

    first, _, last = sockets
    channel = PushChannel(connect, on_message=on_message, on_open=on_open, reconnect_delay=0.01)  # type: ignore[arg-type]
    channel.start()
    await _until(lambda: opens == 1)
    assert first is not None
    first.finish()
    await _until(lambda: opens == 2)

    assert sockets == []
    assert channel.is_connected
    await channel.stop()
    assert last is not None and last.closed


@pytest.mark.asyncio
async def test_auth_rejection_stops_reconnecting() -> None:
    attempts = 0
    fatal: list[TakMapError] = []

    async def connect() -> _FakeWs:
        nonlocal attempts
        attempts += 1
        raise TakMapAuthenticationError("HTTP 401", status_code=401, endpoint="/ws")

    async def on_message(payload: dict[str, Any]) -> None:
        pass

    channel = PushChannel(connect, on_message=on_message, on_fatal=fatal.append, reconnect_delay=0.01)  # type: ignore[arg-type]
    channel.start()
    await _until(lambda: bool(fatal))
    await asyncio.sleep(0.05)

    assert attempts == 1
    assert not channel.is_running
    assert channel.status == ConnectionStatus.DISCONNECTED
    await channel.stop()


@pytest.mark.asyncio
async def test_handler_failure_does_not_close_channel() -> None:
    ws = _FakeWs('{"n": 1}', '{"n": 2}')
    seen: list[int] = []

    async def connect() -> _FakeWs:
        return ws

    async def on_message(payload: dict[str, Any]) -> None:
        seen.append(payload["n"])
        if payload["n"] == 1:
            raise ValueError("bad payload")

    channel = PushChannel(connect, on_message=on_message, reconnect_delay=10.0)  # type: ignore[arg-type]
    channel.start()
    await _until(lambda: len(seen) == 2)

    assert channel.is_connected
    await channel.stop()


@pytest.mark.asyncio
async def test_open_handler_failure_reconnects() -> None:
    first = _FakeWs('{"n": 1}')
    second = _FakeWs('{"n": 2}')
    sockets = [first, second]
    opens = 0
    seen: list[int] = []

    async def connect() -> _FakeWs:
        return sockets.pop(0)

    async def on_open() -> None:
        nonlocal opens
        opens += 1
        if opens == 1:
            raise ValueError("malformed resync payload")

    async def on_message(payload: dict[str, Any]) -> None:
        seen.append(payload["n"])

    channel = PushChannel(connect, on_message=on_message, on_open=on_open, reconnect_delay=0.01)  # type: ignore[arg-type]
    channel.start()
    await _until(lambda: seen == [2])

    assert first.closed
    assert channel.is_running
    assert channel.is_connected
    await channel.stop()


@pytest.mark.asyncio
async def test_stop_from_open_handler_skips_frames() -> None:
    ws = _FakeWs('{"n": 1}')
    seen: list[int] = []
    channel: PushChannel

    async def connect() -> _FakeWs:
        return ws

    async def on_open() -> None:
        channel.cancel()

    async def on_message(payload: dict[str, Any]) -> None:
        seen.append(payload["n"])

    channel = PushChannel(connect, on_message=on_message, on_open=on_open, reconnect_delay=0.01)  # type: ignore[arg-type]
    channel.start()
    await _until(lambda: ws.closed)

    assert seen == []
    assert not channel.is_running
    await channel.stop()
