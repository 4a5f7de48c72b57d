"""Map controller: wires client, store, renderer, tools and chat together."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from takmap._constants import POINT_STALE_DAYS, POINT_TYPE
from takmap._push import ConnectionStatus
from takmap.client import TakMapClient
from takmap.config import TakMapConfig
from takmap.exceptions import TakMapAuthenticationError, TakMapError, TakMapTransportError
from takmap.feed import UpdateFeed
from takmap.geo import format_distance_bearing
from takmap.icons import IconResolver, SymbolRenderer
from takmap.messages import MessageTracker
from takmap.models.entity import EntityCategory, EntityRecord
from takmap.models.message import OutgoingMessage
from takmap.models.server_config import ServerConfig
from takmap.models.taxonomy import TaxonomyNode
from takmap.render import MapView, MarkerRenderer
from takmap.state.entity import Entity
from takmap.state.store import EntityStore
from takmap.taxonomy import SymbolTaxonomy, sidc_from_type, type_from_parts
from takmap.tools import DIGITAL_POINTER, RED_X, SELF, InteractionMode, ToolOverlay, tool_icons

_logger = logging.getLogger(__name__)


@dataclass
class EditForm:
    """Editable fields of the current entity.

    ``affiliation`` and ``subtype`` only apply to the ``unit`` category,
    whose type is rebuilt as ``a-<affiliation>-<subtype>`` on save.
    """

    callsign: str = ""
    category: str = ""
    type: str = ""
    affiliation: str = ""
    subtype: str = ""
    text: str = ""
    send: bool = False
    picker_root: TaxonomyNode | None = None


class MapController:
    """One map session against one server.

    Parameters
    ----------
    client : TakMapClient
        Connected REST/push client.
    view : MapView
        Drawing surface for entity and tool markers.
    symbol_renderer : SymbolRenderer
        Military symbol renderer used for unit icons.
    config : TakMapConfig, optional
        Timing and presentation settings; defaults to ``client.config``.
    on_error : callable, optional
        Receives edit failures (save, delete, send).
    on_status : callable, optional
        Receives push channel status changes.
    on_reload_required : callable, optional
        Called once when the server rejects the session.
    """

    def __init__(
        self,
        client: TakMapClient,
        view: MapView,
        symbol_renderer: SymbolRenderer,
        *,
        config: TakMapConfig | None = None,
        on_error: Callable[[TakMapError], None] | None = None,
        on_status: Callable[[ConnectionStatus], None] | None = None,
        on_reload_required: Callable[[TakMapError], None] | None = None,
    ) -> None:
        self._client = client
        self._view = view
        self._config = config or client.config
        self._on_error = on_error
        self._on_reload_required = on_reload_required

        resolver = IconResolver(
            symbol_renderer,
            size=self._config.icon_size,
            static_url=self._config.static_icon_url,
        )
        self.renderer = MarkerRenderer(
            view,
            resolver,
            with_text=self._config.tooltip_text,
            on_select=self.select,
        )
        self.store = EntityStore(observers=[self.renderer])
        self.tools = ToolOverlay(view)
        self.messages = MessageTracker()
        self.taxonomy: SymbolTaxonomy | None = None
        self.server_config = ServerConfig()
        self.feed = UpdateFeed(
            client,
            self.store,
            self.messages,
            poll_interval=self._config.poll_interval,
            reconnect_delay=self._config.reconnect_delay,
            push_enabled=self._config.push_enabled,
            on_status=on_status,
            on_reload_required=self._reload_required,
        )

        self._tool_icons = tool_icons(self._config.static_icon_url)
        self._sender_task: asyncio.Task[None] | None = None
        self._selected_uid: str | None = None
        self._chat_to_uid = ""
        self._chatroom = ""
        self._point_num = 1
        self._reload_signalled = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load server config and taxonomy, then start the feed and the tool sender."""
        self.server_config = await self._client.get_config()
        cfg = self.server_config
        self._view.set_view(cfg.lat, cfg.lon, cfg.zoom)
        if cfg.is_authenticated:
            self.tools.add_or_move(SELF, cfg.lat, cfg.lon, self._tool_icons[SELF])
        else:
            _logger.info("Server reports no operator identity")

        try:
            self.taxonomy = await self._client.get_types()
        except TakMapTransportError as exc:
            _logger.warning("Type taxonomy unavailable: %s", exc)

        self.feed.start()
        if self._sender_task is None:
            self._sender_task = asyncio.create_task(self._sender_loop(), name="takmap-tool-sender")

    async def stop(self) -> None:
        task = self._sender_task
        self._sender_task = None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self.feed.stop()

    async def _sender_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.tool_report_interval)
            try:
                await self.tools.report(self._client)
            except TakMapAuthenticationError as exc:
                self._reload_required(exc)
                return
            except TakMapTransportError as exc:
                _logger.warning("Tool position report failed: %s", exc)

    def _reload_required(self, exc: TakMapError) -> None:
        if self._reload_signalled:
            return
        self._reload_signalled = True
        if self._sender_task is not None and self._sender_task is not asyncio.current_task():
            self._sender_task.cancel()
        if self._on_reload_required is not None:
            self._on_reload_required(exc)

    def _report_error(self, exc: TakMapError) -> None:
        if isinstance(exc, TakMapAuthenticationError):
            self.feed.reload_required(exc)
            self._reload_required(exc)
            return
        _logger.warning("Edit failed: %s", exc)
        if self._on_error is not None:
            self._on_error(exc)

    # ------------------------------------------------------------------
    # Map interaction
    # ------------------------------------------------------------------

    async def handle_click(self, lat: float, lon: float, mode: InteractionMode) -> None:
        """Apply a map click under the active interaction mode."""
        if mode == InteractionMode.PLACE_RED_X:
            self.tools.add_or_move(RED_X, lat, lon, self._tool_icons[RED_X])
        elif mode == InteractionMode.PLACE_DP1:
            self.tools.add_or_move(DIGITAL_POINTER, lat, lon, self._tool_icons[DIGITAL_POINTER])
        elif mode == InteractionMode.PLACE_POINT:
            await self.place_point(lat, lon)
        elif mode == InteractionMode.PLACE_SELF:
            await self.move_self(lat, lon)

    async def place_point(self, lat: float, lon: float) -> Entity:
        """Create a local point owned by the operator and send it to the server."""
        now = datetime.now(UTC)
        record = EntityRecord(
            uid=str(uuid.uuid4()),
            category=EntityCategory.POINT.value,
            callsign=f"point-{self._point_num}",
            type=POINT_TYPE,
            lat=lat,
            lon=lon,
            start_time=now,
            last_seen=now,
            stale_time=now + timedelta(days=POINT_STALE_DAYS),
            parent_uid=self.server_config.uid,
            parent_callsign=self.server_config.callsign,
            local=True,
        )
        self._point_num += 1
        entity = self.store.add_local(record)
        await self.save_entity(entity)
        self.select(record.uid, follow=True)
        return entity

    async def move_self(self, lat: float, lon: float) -> None:
        """Move the operator's own marker and report the position."""
        self.server_config = self.server_config.model_copy(update={"lat": lat, "lon": lon})
        self.tools.add_or_move(SELF, lat, lon, self._tool_icons[SELF])
        try:
            await self._client.post_position(lat, lon)
        except TakMapError as exc:
            self._report_error(exc)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, uid: str | None, follow: bool = False) -> None:
        """Make *uid* the current entity; ``follow`` also centres the map on it."""
        self._selected_uid = uid
        if uid is None or not follow:
            return
        entity = self.store.get(uid)
        if entity is not None and entity.has_coords:
            self._view.set_view(entity.lat, entity.lon)

    def lock(self, uid: str | None) -> None:
        """Track *uid*: the view follows its every position update."""
        self.renderer.locked_uid = uid
        if uid is not None:
            self.select(uid, follow=True)

    @property
    def current_entity(self) -> Entity | None:
        if self._selected_uid is None:
            return None
        return self.store.get(self._selected_uid)

    def display_name(self, entity: Entity) -> str:
        """Callsign, prefixed ``+`` (shared) or ``*`` (unshared) for own entities."""
        record = entity.record
        name = record.callsign or "no name"
        if self.server_config.uid and record.parent_uid == self.server_config.uid:
            return ("+ " if record.send else "* ") + name
        return name

    def distance_to(self, entity: Entity) -> str:
        """Distance and bearing from the operator's position, for display."""
        cfg = self.server_config
        return format_distance_bearing(cfg.lat, cfg.lon, entity.lat, entity.lon)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    async def save_entity(self, entity: Entity) -> bool:
        """Send *entity* to the server and merge whatever it echoes back."""
        try:
            confirmed = await self._client.save_entity(entity.record)
        except TakMapError as exc:
            self._report_error(exc)
            return False
        if confirmed is not None:
            self.store.upsert(confirmed)
        return True

    def form_for(self, entity: Entity | None) -> EditForm:
        """Populate an edit form from *entity* (blank for ``None``)."""
        if entity is None:
            return EditForm()
        record = entity.record
        form = EditForm(
            callsign=record.callsign,
            category=record.category,
            type=record.type,
            affiliation="h",
            subtype="G",
            text=record.text,
            send=record.send,
            picker_root=self.taxonomy.root if self.taxonomy is not None else None,
        )
        if record.type.startswith("a-"):
            form.type = POINT_TYPE
            form.affiliation = record.type[2:3]
            form.subtype = record.type[4:]
            if self.taxonomy is not None:
                form.picker_root = self.taxonomy.find_parent(form.subtype)
        return form

    def choose_branch(self, form: EditForm, code: str) -> None:
        """Descend the type picker into *code*, preselecting its first child."""
        if self.taxonomy is None:
            return
        node, first = self.taxonomy.picker_root(code)
        form.picker_root = node
        form.subtype = first

    async def apply_form(self, form: EditForm) -> bool:
        """Write *form* onto the current entity and save it."""
        entity = self.current_entity
        if entity is None:
            return False
        update: dict[str, object] = {
            "callsign": form.callsign,
            "category": form.category,
            "send": form.send,
            "text": form.text,
        }
        if form.category == EntityCategory.UNIT:
            type_code = type_from_parts(form.affiliation, form.subtype)
            update["type"] = type_code
            update["sidc"] = sidc_from_type(type_code)
        else:
            update["type"] = form.type
            update["sidc"] = ""
        entity.record = entity.record.model_copy(update=update)
        entity.needs_redraw = True
        self.store.refresh(entity.uid)
        return await self.save_entity(entity)

    async def delete_current(self) -> bool:
        uid = self._selected_uid
        if uid is None:
            return False
        try:
            await self._client.delete_entity(uid)
        except TakMapError as exc:
            self._report_error(exc)
            return False
        self.store.remove(uid)
        self._selected_uid = None
        return True

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    def open_conversation(self, key: str, chatroom: str = "") -> None:
        """Open a conversation; its messages count as seen from now on."""
        self._chat_to_uid = key
        self._chatroom = chatroom
        self.messages.active_key = key

    def close_conversation(self) -> None:
        self.messages.active_key = None

    async def send_message(self, text: str, to_uid: str | None = None, chatroom: str | None = None) -> bool:
        """Send *text* to a peer or room; defaults to the open conversation."""
        message = OutgoingMessage(
            sender=self.server_config.callsign,
            from_uid=self.server_config.uid,
            chatroom=self._chatroom if chatroom is None else chatroom,
            to_uid=self._chat_to_uid if to_uid is None else to_uid,
            text=text,
        )
        try:
            conversations = await self._client.send_message(message)
        except TakMapError as exc:
            self._report_error(exc)
            return False
        if conversations is not None:
            self.messages.record_batch(conversations)
        else:
            await self.feed.refresh_messages()
        return True

