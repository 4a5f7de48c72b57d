"""takmap - Async client-side engine for a situational-awareness map."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("takmap")
except PackageNotFoundError:
    __version__ = "0+local"
from takmap._push import ConnectionStatus
from takmap.client import TakMapClient
from takmap.config import TakMapConfig
from takmap.controller import EditForm, MapController
from takmap.exceptions import (
    TakMapAuthenticationError,
    TakMapConfigError,
    TakMapEditError,
    TakMapError,
    TakMapPushError,
    TakMapTaxonomyError,
    TakMapTransportError,
)
from takmap.feed import UpdateFeed
from takmap.icons import IconResolver, SymbolRenderer
from takmap.messages import MessageTracker
from takmap.models import (
    ChatMessage,
    Conversation,
    EntityCategory,
    EntityRecord,
    IconDescriptor,
    MarkerSpec,
    ServerConfig,
    TaxonomyNode,
)
from takmap.render import MapView, MarkerRenderer
from takmap.state import Entity, EntityStore, ReconcileResult
from takmap.taxonomy import SymbolTaxonomy
from takmap.tools import InteractionMode, ToolOverlay

__all__ = [
    "__version__",
    "ChatMessage",
    "ConnectionStatus",
    "Conversation",
    "EditForm",
    "Entity",
    "EntityCategory",
    "EntityRecord",
    "EntityStore",
    "IconDescriptor",
    "IconResolver",
    "InteractionMode",
    "MapController",
    "MapView",
    "MarkerRenderer",
    "MarkerSpec",
    "MessageTracker",
    "ReconcileResult",
    "ServerConfig",
    "SymbolRenderer",
    "SymbolTaxonomy",
    "TakMapAuthenticationError",
    "TakMapClient",
    "TakMapConfig",
    "TakMapConfigError",
    "TakMapEditError",
    "TakMapError",
    "TakMapPushError",
    "TakMapTaxonomyError",
    "TakMapTransportError",
    "TaxonomyNode",
    "ToolOverlay",
    "UpdateFeed",
]
