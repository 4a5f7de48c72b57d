"""Entity record as served by the map server."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import Field, field_validator

from takmap.models._base import TakBaseModel


class EntityCategory(StrEnum):
    """Categories the map knows how to treat specially.

    ``EntityRecord.category`` stays a plain string so categories this
    client does not know about still survive a save round-trip.
    """

    UNIT = "unit"
    CONTACT = "contact"
    POINT = "point"
    DELETE = "delete"


class EntityRecord(TakBaseModel):
    """One remote object (unit, contact or point).

    ``lat``/``lon`` of ``(0, 0)`` means "no fix".  ``hae`` only matters
    for airborne symbols (third ``sidc`` character ``'A'``).
    """

    uid: str
    category: str = ""
    type: str = ""
    sidc: str = ""
    scope: str = ""

    callsign: str = ""
    team: str = ""
    role: str = ""
    status: str = ""
    color: str = ""
    icon: str = ""
    text: str = ""

    lat: float = 0.0
    lon: float = 0.0
    hae: float = 0.0
    speed: float = 0.0
    course: float = 0.0

    time: datetime | None = None
    last_seen: datetime | None = None
    stale_time: datetime | None = None
    start_time: datetime | None = None
    send_time: datetime | None = None

    tak_version: str = ""
    device: str = ""
    battery: int = 0
    missions: list[str] = Field(default_factory=list)

    parent_uid: str = ""
    parent_callsign: str = ""
    local: bool = False
    send: bool = False

    @field_validator("uid")
    @classmethod
    def _require_uid(cls, value: str) -> str:
        uid = value.strip()
        if not uid:
            raise ValueError("uid must be non-empty")
        return uid

    @field_validator("speed")
    @classmethod
    def _non_negative_speed(cls, value: float) -> float:
        return value if value > 0 else 0.0

    @property
    def is_airborne(self) -> bool:
        """Whether the symbol code marks an air track."""
        return len(self.sidc) > 2 and self.sidc[2] == "A"

    @property
    def is_contact(self) -> bool:
        """Another operator: distinguished by a team *and* a role."""
        return bool(self.team) and bool(self.role)

    def to_payload(self) -> dict[str, object]:
        """JSON-ready dict for ``POST /unit``."""
        return self.model_dump(mode="json")
