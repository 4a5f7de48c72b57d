"""Marker lifecycle: the adapter between the entity store and a map view.

The renderer owns the ``uid -> marker handle`` side table, so entities
never hold references into the drawing library.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Callable
from typing import Any, Protocol

from takmap.icons import IconResolver
from takmap.models.entity import EntityRecord
from takmap.models.render import MarkerSpec
from takmap.state.entity import Entity

_logger = logging.getLogger(__name__)


class MapView(Protocol):
    """The drawing surface.  Handles are opaque to takmap."""

    def create_marker(
        self,
        spec: MarkerSpec,
        *,
        on_click: Callable[[], None] | None = None,
        on_drag_end: Callable[[float, float], None] | None = None,
    ) -> Any: ...

    def update_marker(self, handle: Any, spec: MarkerSpec, *, icon_changed: bool) -> None: ...

    def remove_marker(self, handle: Any) -> None: ...

    def set_view(self, lat: float, lon: float, zoom: int | None = None) -> None: ...


def build_tooltip(record: EntityRecord) -> str:
    """Tooltip HTML: callsign, team/role, speed, altitude, free text."""
    parts = [f"<b>{html.escape(record.callsign)}</b><br/>"]
    if record.team:
        parts.append(f"{html.escape(record.team)} {html.escape(record.role)}<br/>")
    if record.speed > 0:
        parts.append(f"Speed: {record.speed:.0f} m/s<br/>")
    if record.is_airborne:
        parts.append(f"hae: {record.hae:.0f} m<br/>")
    parts.append(html.escape(record.text).replace("\n", "<br/>").replace("; ", "<br/>"))
    return "".join(parts)


class MarkerRenderer:
    """Keeps at most one marker per entity, present exactly while it has coordinates.

    Implements :class:`~takmap.state.store.StoreObserver`.
    """

    def __init__(
        self,
        view: MapView,
        resolver: IconResolver,
        *,
        with_text: bool = True,
        on_select: Callable[[str], None] | None = None,
    ) -> None:
        self._view = view
        self._resolver = resolver
        self._with_text = with_text
        self._on_select = on_select
        self._markers: dict[str, Any] = {}
        self.locked_uid: str | None = None

    def has_marker(self, uid: str) -> bool:
        return uid in self._markers

    def marker(self, uid: str) -> Any:
        return self._markers.get(uid)

    @property
    def marker_count(self) -> int:
        return len(self._markers)

    def entity_updated(self, entity: Entity) -> None:
        if not entity.has_coords:
            self._discard(entity.uid)
            return

        handle = self._markers.get(entity.uid)
        if handle is None:
            self._create(entity)
        else:
            spec = self._spec(entity, with_icon=entity.needs_redraw)
            self._view.update_marker(handle, spec, icon_changed=entity.needs_redraw)
        entity.needs_redraw = False

        if self.locked_uid == entity.uid:
            self._view.set_view(entity.lat, entity.lon)

    def entity_removed(self, entity: Entity) -> None:
        self._discard(entity.uid)
        if self.locked_uid == entity.uid:
            self.locked_uid = None

    def clear(self) -> None:
        """Remove every marker (view teardown)."""
        for uid in list(self._markers):
            self._discard(uid)

    def _create(self, entity: Entity) -> None:
        uid = entity.uid

        def on_click() -> None:
            if self._on_select is not None:
                self._on_select(uid)

        on_drag_end: Callable[[float, float], None] | None = None
        if entity.local:

            def on_drag_end(lat: float, lon: float) -> None:
                entity.move_to(lat, lon)
                _logger.debug("Entity uid=%s dragged to %.6f,%.6f", uid, lat, lon)

        spec = self._spec(entity, with_icon=True)
        self._markers[uid] = self._view.create_marker(spec, on_click=on_click, on_drag_end=on_drag_end)
        _logger.debug("Marker created uid=%s", uid)

    def _discard(self, uid: str) -> None:
        handle = self._markers.pop(uid, None)
        if handle is not None:
            self._view.remove_marker(handle)
            _logger.debug("Marker removed uid=%s", uid)

    def _spec(self, entity: Entity, *, with_icon: bool) -> MarkerSpec:
        record = entity.record
        icon = self._resolver.resolve(record, self._with_text) if with_icon else None
        return MarkerSpec(
            lat=record.lat,
            lon=record.lon,
            icon=icon,
            tooltip_html=build_tooltip(record),
            draggable=record.local,
        )
