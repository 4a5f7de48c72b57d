"""Operator-placed map aids (red X, digital pointer, own position).

Tools are not entities: they never go through reconciliation and each
named slot holds at most one marker, which is moved rather than
duplicated on repeated placement.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from takmap._constants import DIGITAL_POINTER_NAME
from takmap.models.render import IconDescriptor, MarkerSpec
from takmap.render import MapView

if TYPE_CHECKING:
    from takmap.client import TakMapClient

_logger = logging.getLogger(__name__)

RED_X = "redx"
DIGITAL_POINTER = "dp1"
SELF = "me"


class InteractionMode(StrEnum):
    """What a click on the map does.  Exactly one is active at a time."""

    NONE = "none"
    PLACE_RED_X = "place_red_x"
    PLACE_DP1 = "place_dp1"
    PLACE_POINT = "place_point"
    PLACE_SELF = "place_self"


def tool_icons(static_url: str = "/static/icons") -> dict[str, IconDescriptor]:
    """Fixed icons of the named slots."""
    base = static_url.rstrip("/")
    return {
        RED_X: IconDescriptor(uri=f"{base}/x.png", anchor_x=10, anchor_y=10),
        DIGITAL_POINTER: IconDescriptor(uri=f"{base}/spoi_icon.png", anchor_x=10, anchor_y=10),
        SELF: IconDescriptor(uri=f"{base}/self.png", anchor_x=16, anchor_y=16),
    }


@dataclass
class ToolSlot:
    lat: float
    lon: float
    handle: Any


class ToolOverlay:
    """Named, at-most-one-marker slots on top of the map."""

    def __init__(self, view: MapView) -> None:
        self._view = view
        self._slots: dict[str, ToolSlot] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def names(self) -> list[str]:
        return list(self._slots)

    def get(self, name: str) -> tuple[float, float] | None:
        """Current ``(lat, lon)`` of a slot."""
        slot = self._slots.get(name)
        return (slot.lat, slot.lon) if slot is not None else None

    def add_or_move(self, name: str, lat: float, lon: float, icon: IconDescriptor | None = None) -> None:
        """Relocate the slot's marker, creating it on first placement."""
        slot = self._slots.get(name)
        spec = MarkerSpec(lat=lat, lon=lon, icon=icon)
        if slot is not None:
            self._view.update_marker(slot.handle, spec, icon_changed=False)
            slot.lat, slot.lon = lat, lon
            _logger.debug("Tool %s moved to %.6f,%.6f", name, lat, lon)
            return
        handle = self._view.create_marker(spec)
        self._slots[name] = ToolSlot(lat=lat, lon=lon, handle=handle)
        _logger.debug("Tool %s placed at %.6f,%.6f", name, lat, lon)

    def remove(self, name: str) -> bool:
        slot = self._slots.pop(name, None)
        if slot is None:
            return False
        self._view.remove_marker(slot.handle)
        _logger.debug("Tool %s removed", name)
        return True

    def clear(self) -> None:
        for name in list(self._slots):
            self.remove(name)

    async def report(self, client: TakMapClient) -> bool:
        """Send the digital pointer position, if placed.

        ``dp1`` is the only slot with an outbound side effect.
        """
        position = self.get(DIGITAL_POINTER)
        if position is None:
            return False
        lat, lon = position
        await client.post_digital_pointer(DIGITAL_POINTER_NAME, lat, lon)
        return True
