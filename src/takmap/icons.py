"""Icon resolution: entity attributes -> renderable icon descriptor.

Pure functions only.  Military symbols are delegated to an external
:class:`SymbolRenderer`; everything else is either an inline SVG circle
or a fixed image asset.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol
from urllib.parse import quote

from takmap._constants import (
    CIRCLE_STROKE,
    DEFAULT_POINT_COLOR,
    OFFLINE_COLOR,
    ROLE_ABBREVIATIONS,
    SMALL_CIRCLE_SIZE,
    SPOT_MAP_PREFIX,
    STATIC_TYPE_ICONS,
    TEAM_COLORS,
    UNKNOWN_TEAM_COLOR,
)
from takmap.models.entity import EntityCategory, EntityRecord
from takmap.models.render import IconDescriptor

_logger = logging.getLogger(__name__)

# Characters encodeURI leaves alone besides the unreserved set.
_URI_SAFE = ";,/?:@&=+$!*'()#"


class SymbolRenderer(Protocol):
    """Military symbol rasterizer: symbol code + options -> image."""

    def render(self, sidc: str, options: Mapping[str, Any]) -> IconDescriptor: ...


def to_data_uri(svg: str) -> str:
    """Encode an SVG document as a ``data:`` URI."""
    return quote("data:image/svg+xml," + svg, safe=_URI_SAFE).replace("#", "%23")


def circle_svg(size: int, fill: str, stroke: str = CIRCLE_STROKE, label: str | None = None) -> str:
    """A filled circle, optionally with a centred text label."""
    center = _half(size)
    radius = center - 1
    parts = [
        f'<svg width="{size}" height="{size}" xmlns="http://www.w3.org/2000/svg">',
        '<metadata id="metadata1">image/svg+xml</metadata>',
        f'<circle style="fill: {fill}; stroke: {stroke};" cx="{center}" cy="{center}" r="{radius}"/>',
    ]
    if label:
        parts.append(
            f'<text x="50%" y="50%" text-anchor="middle" font-size="{_half(size)}px" '
            f'font-family="Arial" dy=".3em">{label}</text>'
        )
    parts.append("</svg>")
    return "".join(parts)


def role_label(role: str) -> str:
    """Short label for a role; unknown roles get none."""
    return ROLE_ABBREVIATIONS.get(role, "")


def team_color(team: str, status: str) -> str:
    if status == "Offline":
        return OFFLINE_COLOR
    return TEAM_COLORS.get(team, UNKNOWN_TEAM_COLOR)


def _half(size: int) -> int:
    # Math.round(size / 2) for positive sizes.
    return (size + 1) // 2


class IconResolver:
    """Map an entity record to the icon its marker should show.

    Rules are evaluated in order, first match wins: contact circle,
    spot-map circle, fixed type literal, generic point circle, military
    symbol.
    """

    def __init__(
        self,
        symbol_renderer: SymbolRenderer,
        *,
        size: int = 24,
        static_url: str = "/static/icons",
    ) -> None:
        self._symbols = symbol_renderer
        self._size = size
        self._static_url = static_url.rstrip("/")

    @property
    def size(self) -> int:
        return self._size

    def resolve(self, record: EntityRecord, with_text: bool = False) -> IconDescriptor | None:
        """Return the icon for *record*, or ``None`` when none can be drawn."""
        if record.is_contact:
            return self._contact_icon(record)
        if record.icon.startswith(SPOT_MAP_PREFIX):
            return self._small_circle(record.color)
        static = STATIC_TYPE_ICONS.get(record.type)
        if static is not None:
            filename, anchor_x, anchor_y = static
            return IconDescriptor(uri=f"{self._static_url}/{filename}", anchor_x=anchor_x, anchor_y=anchor_y)
        if record.category == EntityCategory.POINT:
            return self._small_circle(record.color)
        return self.military_icon(record, with_text)

    def military_icon(self, record: EntityRecord, with_text: bool = False) -> IconDescriptor | None:
        """Delegate to the symbol renderer; ``None`` for an empty symbol code."""
        if not record.sidc:
            _logger.debug("No symbol code for uid=%s, no icon", record.uid)
            return None
        return self._symbols.render(record.sidc, self.symbol_options(record, with_text))

    def symbol_options(self, record: EntityRecord, with_text: bool) -> dict[str, Any]:
        options: dict[str, Any] = {"size": self._size}
        if not with_text:
            return options
        if record.callsign:
            options["uniqueDesignation"] = record.callsign
        if record.speed > 0:
            options["speed"] = f"{record.speed * 3.6:.1f} km/h"
            options["direction"] = record.course
        if record.is_airborne:
            options["altitudeDepth"] = f"{record.hae:.0f} m"
        return options

    def _contact_icon(self, record: EntityRecord) -> IconDescriptor:
        svg = circle_svg(self._size, team_color(record.team, record.status), label=role_label(record.role))
        center = _half(self._size)
        return IconDescriptor(uri=to_data_uri(svg), anchor_x=center, anchor_y=center)

    def _small_circle(self, color: str) -> IconDescriptor:
        svg = circle_svg(SMALL_CIRCLE_SIZE, color or DEFAULT_POINT_COLOR)
        center = _half(SMALL_CIRCLE_SIZE)
        return IconDescriptor(uri=to_data_uri(svg), anchor_x=center, anchor_y=center)
