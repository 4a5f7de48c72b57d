"""Data models for map server payloads."""

from takmap.models._base import TakBaseModel
from takmap.models.entity import EntityCategory, EntityRecord
from takmap.models.events import ChatEvent, DeleteEvent, PushEvent, UnitEvent, parse_push_event
from takmap.models.message import ChatMessage, Conversation, OutgoingMessage
from takmap.models.render import IconDescriptor, MarkerSpec
from takmap.models.server_config import MapLayer, ServerConfig
from takmap.models.taxonomy import TaxonomyNode

__all__ = [
    "ChatEvent",
    "ChatMessage",
    "Conversation",
    "DeleteEvent",
    "EntityCategory",
    "EntityRecord",
    "IconDescriptor",
    "MapLayer",
    "MarkerSpec",
    "OutgoingMessage",
    "PushEvent",
    "ServerConfig",
    "TakBaseModel",
    "TaxonomyNode",
    "UnitEvent",
    "parse_push_event",
]
