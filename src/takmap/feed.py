"""Update feed: poll/push duality feeding the entity store.

Poll mode fetches the full entity list on a fixed interval.  Push mode
keeps a persistent connection open and applies incremental events; on
every (re)connect one full fetch of entities and messages repairs
whatever was missed while disconnected.  Entity poll fetches are suppressed
while the push channel is connected or another full fetch is in flight;
the message list is polled on every tick.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from takmap._push import ConnectionStatus, PushChannel
from takmap.client import TakMapClient
from takmap.exceptions import TakMapAuthenticationError, TakMapError, TakMapTransportError
from takmap.messages import MessageTracker
from takmap.models.events import ChatEvent, parse_push_event
from takmap.state.store import EntityStore

_logger = logging.getLogger(__name__)


class UpdateFeed:
    """Drives :class:`EntityStore` and :class:`MessageTracker` from the server."""

    def __init__(
        self,
        client: TakMapClient,
        store: EntityStore,
        tracker: MessageTracker,
        *,
        poll_interval: float = 30.0,
        reconnect_delay: float = 3.0,
        push_enabled: bool = True,
        on_status: Callable[[ConnectionStatus], None] | None = None,
        on_reload_required: Callable[[TakMapError], None] | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._tracker = tracker
        self._poll_interval = poll_interval
        self._on_status = on_status
        self._on_reload_required = on_reload_required
        self._fetch_lock = asyncio.Lock()
        self._poll_task: asyncio.Task[None] | None = None
        self._running = False
        self._reload_signalled = False
        self._push: PushChannel | None = None
        if push_enabled:
            self._push = PushChannel(
                client.connect_push,
                on_message=self.handle_push_payload,
                on_open=self._on_push_open,
                on_status=self._push_status_changed,
                on_fatal=self.reload_required,
                reconnect_delay=reconnect_delay,
                logger=_logger,
            )

    @property
    def push_connected(self) -> bool:
        return self._push is not None and self._push.is_connected

    @property
    def status(self) -> ConnectionStatus:
        if self._push is None:
            return ConnectionStatus.DISCONNECTED
        return self._push.status

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        if self._push is not None:
            self._push.start()
        self._poll_task = asyncio.create_task(self._poll_loop(), name="takmap-poll")

    async def stop(self) -> None:
        self._running = False
        task = self._poll_task
        self._poll_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._push is not None:
            await self._push.stop()

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def refresh_entities(self) -> bool:
        """Fetch the full entity list and reconcile the store against it."""
        try:
            records = await self._client.get_entities()
        except TakMapAuthenticationError as exc:
            self.reload_required(exc)
            return False
        except TakMapTransportError as exc:
            _logger.warning("Entity fetch failed: %s", exc)
            return False
        self._store.reconcile(records)
        return True

    async def refresh_messages(self) -> bool:
        try:
            conversations = await self._client.get_messages()
        except TakMapAuthenticationError as exc:
            self.reload_required(exc)
            return False
        except TakMapTransportError as exc:
            _logger.warning("Message fetch failed: %s", exc)
            return False
        self._tracker.record_batch(conversations)
        return True

    async def resync(self) -> bool:
        """One unconditional full fetch of entities and messages."""
        async with self._fetch_lock:
            entities_ok = await self.refresh_entities()
            messages_ok = await self.refresh_messages()
        return entities_ok and messages_ok

    async def poll_once(self) -> bool:
        """One poll tick.

        The entity list is skipped while push is live or a full fetch is
        running; the message list is fetched on every tick.
        """
        if self.push_connected:
            _logger.debug("Entity poll suppressed: push channel connected")
        elif self._fetch_lock.locked():
            _logger.debug("Entity poll suppressed: full fetch in flight")
        else:
            return await self.resync()
        return await self.refresh_messages()

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.poll_once()
            except ValidationError:
                _logger.exception("Malformed server payload during poll")
            await asyncio.sleep(self._poll_interval)

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def handle_push_payload(self, payload: dict[str, Any]) -> None:
        """Apply one decoded push message."""
        try:
            event = parse_push_event(payload)
        except ValidationError:
            _logger.debug("Ignoring unknown push payload: %s", payload, exc_info=True)
            return
        if isinstance(event, ChatEvent):
            await self.refresh_messages()
            return
        self._store.apply_event(event)

    async def _on_push_open(self) -> None:
        await self.resync()

    def _push_status_changed(self, status: ConnectionStatus) -> None:
        _logger.debug("Push channel status %s", status)
        if self._on_status is not None:
            self._on_status(status)

    def reload_required(self, exc: TakMapError) -> None:
        """Stop all fetching once the server has rejected the session."""
        if self._reload_signalled:
            return
        self._reload_signalled = True
        _logger.warning("Not authenticated, stopping feed: %s", exc)
        self._running = False
        if self._poll_task is not None and self._poll_task is not asyncio.current_task():
            self._poll_task.cancel()
        if self._push is not None:
            self._push.cancel()
        if self._on_reload_required is not None:
            self._on_reload_required(exc)
