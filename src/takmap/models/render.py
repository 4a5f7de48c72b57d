"""Render-side value objects passed to the map view."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class IconDescriptor:
    """Renderable icon: image reference plus anchor offset in pixels."""

    uri: str
    anchor_x: int
    anchor_y: int


@dataclass(frozen=True, slots=True)
class MarkerSpec:
    """Everything the map view needs to draw or update one marker."""

    lat: float
    lon: float
    icon: IconDescriptor | None
    tooltip_html: str = ""
    draggable: bool = False
