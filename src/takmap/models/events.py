"""Push channel events.

The push channel delivers JSON objects tagged by ``type``.  Older
servers push bare entity records instead; ``parse_push_event`` accepts
both shapes.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter

from takmap.models._base import TakBaseModel
from takmap.models.entity import EntityCategory, EntityRecord


class UnitEvent(TakBaseModel):
    """An entity was created or changed."""

    type: Literal["unit"] = "unit"
    unit: EntityRecord


class DeleteEvent(TakBaseModel):
    """An entity is gone."""

    type: Literal["delete"] = "delete"
    uid: str


class ChatEvent(TakBaseModel):
    """New chat traffic; the payload does not carry the messages."""

    type: Literal["chat"] = "chat"


PushEvent = Annotated[UnitEvent | DeleteEvent | ChatEvent, Field(discriminator="type")]

_PUSH_EVENT_ADAPTER: TypeAdapter[UnitEvent | DeleteEvent | ChatEvent] = TypeAdapter(PushEvent)


def parse_push_event(payload: dict[str, Any]) -> UnitEvent | DeleteEvent | ChatEvent:
    """Validate one decoded push message.

    Raises ``pydantic.ValidationError`` for unknown or malformed events.
    """
    if "type" not in payload and "uid" in payload:
        record = EntityRecord.model_validate(payload)
        if record.category == EntityCategory.DELETE:
            return DeleteEvent(uid=record.uid, raw=payload)
        return UnitEvent(unit=record, raw=payload)
    return _PUSH_EVENT_ADAPTER.validate_python(payload)
