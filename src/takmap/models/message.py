"""Chat message models."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from takmap.models._base import TakBaseModel


class ChatMessage(TakBaseModel):
    """A single chat message.

    Parameters
    ----------
    message_id : str
        Unique message id; drives the "seen" accounting.
    sender : str
        Sender callsign (``from`` on the wire).
    """

    message_id: str = ""
    time: datetime | None = None
    parent: str = ""
    chatroom: str = ""
    sender: str = Field(default="", alias="from")
    from_uid: str = ""
    to_uid: str = ""
    direct: bool = False
    text: str = ""


class Conversation(TakBaseModel):
    """All messages exchanged with one peer or chat room, newest first."""

    title: str = Field(default="", alias="from")
    uid: str = ""
    messages: list[ChatMessage] = Field(default_factory=list)


class OutgoingMessage(TakBaseModel):
    """Body of ``POST /message``."""

    sender: str = Field(default="", alias="from")
    from_uid: str = ""
    chatroom: str = ""
    to_uid: str = ""
    text: str = ""

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)
