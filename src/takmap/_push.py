"""Push channel runtime: a persistent connection delivering JSON events."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

import aiohttp

from takmap.exceptions import TakMapAuthenticationError, TakMapError, TakMapPushError


class ConnectionStatus(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def decode_push_frame(data: str) -> dict[str, Any] | None:
    """Decode one text frame; anything but a JSON object is dropped."""
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


class PushChannel:
    """Keeps one push connection open, reconnecting after a fixed delay.

    The reconnect loop has no retry limit; it runs until :meth:`stop`
    is called or the server rejects the client as unauthenticated.
    """

    def __init__(
        self,
        connect: Callable[[], Awaitable[aiohttp.ClientWebSocketResponse]],
        *,
        on_message: Callable[[dict[str, Any]], Awaitable[None]],
        on_open: Callable[[], Awaitable[None]] | None = None,
        on_status: Callable[[ConnectionStatus], None] | None = None,
        on_fatal: Callable[[TakMapError], None] | None = None,
        reconnect_delay: float = 3.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._connect = connect
        self._on_message = on_message
        self._on_open = on_open
        self._on_status = on_status
        self._on_fatal = on_fatal
        self._reconnect_delay = reconnect_delay
        self._logger = logger or logging.getLogger(__name__)
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._status = ConnectionStatus.DISCONNECTED

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._running = True
        self._task = asyncio.create_task(self._run(), name="takmap-push")

    def cancel(self) -> None:
        """Stop without waiting; safe to call from inside a callback."""
        self._running = False
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()

    async def stop(self) -> None:
        self._running = False
        ws = self._ws
        if ws is not None:
            await ws.close()
        task = self._task
        self._task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._set_status(ConnectionStatus.DISCONNECTED)

    async def _run(self) -> None:
        while self._running:
            await self._run_once()
            if self._running:
                self._logger.debug("Push channel reconnect in %.1fs", self._reconnect_delay)
                await asyncio.sleep(self._reconnect_delay)

    async def _run_once(self) -> None:
        self._set_status(ConnectionStatus.CONNECTING)
        try:
            ws = await self._connect()
        except TakMapAuthenticationError as exc:
            self._logger.warning("Push channel rejected: %s", exc)
            self._running = False
            self._set_status(ConnectionStatus.DISCONNECTED)
            if self._on_fatal is not None:
                self._on_fatal(exc)
            return
        except TakMapPushError as exc:
            self._logger.warning("Push channel connect failed: %s", exc)
            self._set_status(ConnectionStatus.DISCONNECTED)
            return

        self._ws = ws
        self._set_status(ConnectionStatus.CONNECTED)
        self._logger.info("Push channel connected")
        try:
            if self._on_open is not None:
                try:
                    await self._on_open()
                except Exception:
                    self._logger.warning("Push channel open handler failed", exc_info=True)
                    return
                if not self._running:
                    return
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    await self._dispatch(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    self._logger.warning("Push channel error: %s", ws.exception())
                    break
        except aiohttp.ClientError as exc:
            self._logger.warning("Push channel read failed: %s", exc)
        finally:
            self._ws = None
            await ws.close()
            self._set_status(ConnectionStatus.DISCONNECTED)
            self._logger.info("Push channel closed")

    async def _dispatch(self, data: str) -> None:
        payload = decode_push_frame(data)
        if payload is None:
            self._logger.debug("Push frame is not a JSON object: %.200s", data)
            return
        try:
            await self._on_message(payload)
        except Exception:
            self._logger.debug("Push message handler failed", exc_info=True)

    def _set_status(self, status: ConnectionStatus) -> None:
        if status == self._status:
            return
        self._status = status
        if self._on_status is not None:
            self._on_status(status)
