"""Server-provided map configuration (``GET /config``)."""

from __future__ import annotations

from pydantic import AliasChoices, Field

from takmap.models._base import TakBaseModel


class MapLayer(TakBaseModel):
    """Base tile layer definition."""

    name: str = ""
    url: str
    min_zoom: int = Field(default=1, validation_alias=AliasChoices("minZoom", "min_zoom"))
    max_zoom: int = Field(default=20, validation_alias=AliasChoices("maxZoom", "max_zoom"))
    parts: list[str] = Field(default_factory=list)
    """Tile server subdomains."""


class ServerConfig(TakBaseModel):
    """Initial map centre/zoom, tile layers and operator identity."""

    version: str = ""
    uid: str = ""
    callsign: str = ""
    team: str = ""
    role: str = ""
    lat: float = 0.0
    lon: float = 0.0
    zoom: int = 11
    layers: list[MapLayer] = Field(default_factory=list)

    @property
    def is_authenticated(self) -> bool:
        """The server only reports an operator identity for a logged-in user."""
        return bool(self.callsign)
