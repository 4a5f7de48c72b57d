"""High-level async client for the map server REST API."""

from __future__ import annotations

import logging
from urllib.parse import quote
from typing import Any

import aiohttp

from takmap._constants import (
    CONFIG_PATH,
    DIGITAL_POINTER_PATH,
    ENTITIES_PATH,
    MESSAGES_PATH,
    POSITION_PATH,
    PUSH_PATH,
    TYPES_PATH,
)
from takmap._transport import HttpTransport, Transport
from takmap.config import TakMapConfig
from takmap.exceptions import TakMapAuthenticationError, TakMapEditError, TakMapError, TakMapTransportError
from takmap.models.entity import EntityRecord
from takmap.models.message import Conversation, OutgoingMessage
from takmap.models.server_config import ServerConfig
from takmap.taxonomy import SymbolTaxonomy

_logger = logging.getLogger(__name__)


def _parse_conversations(payload: Any) -> dict[str, Conversation]:
    if not isinstance(payload, dict):
        return {}
    return {str(key): Conversation.model_validate(value) for key, value in payload.items() if isinstance(value, dict)}


def _parse_entities(payload: Any) -> list[EntityRecord]:
    if isinstance(payload, dict):
        payload = payload.get("units") or []
    if not isinstance(payload, list):
        raise TakMapTransportError(
            f"Entity list has unexpected shape {type(payload).__name__}",
            endpoint=ENTITIES_PATH,
        )
    return [EntityRecord.model_validate(item) for item in payload]


class TakMapClient:
    """Async client for the map server.

    Usage::

        async with TakMapClient(config) as client:
            entities = await client.get_entities()
    """

    def __init__(
        self,
        config: TakMapConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport

    @property
    def config(self) -> TakMapConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TakMapClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise TakMapError("Client not initialized. Use 'async with TakMapClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Read endpoints
    # ------------------------------------------------------------------

    async def get_config(self) -> ServerConfig:
        """Map centre/zoom, base layers and operator identity."""
        payload = await self._require_transport().request_json("GET", CONFIG_PATH)
        return ServerConfig.model_validate(payload or {})

    async def get_entities(self) -> list[EntityRecord]:
        """Full entity snapshot."""
        payload = await self._require_transport().request_json("GET", ENTITIES_PATH)
        return _parse_entities(payload)

    async def get_messages(self) -> dict[str, Conversation]:
        """Conversations keyed by peer uid or chat room."""
        payload = await self._require_transport().request_json("GET", MESSAGES_PATH)
        return _parse_conversations(payload)

    async def get_types(self) -> SymbolTaxonomy:
        """Type taxonomy tree."""
        payload = await self._require_transport().request_json("GET", TYPES_PATH)
        return SymbolTaxonomy.from_payload(payload)

    async def connect_push(self) -> aiohttp.ClientWebSocketResponse:
        """Open the push channel."""
        return await self._require_transport().ws_connect(PUSH_PATH)

    # ------------------------------------------------------------------
    # Outgoing edits
    # ------------------------------------------------------------------

    async def save_entity(self, record: EntityRecord) -> EntityRecord | None:
        """Create or update one entity.

        Returns the server-confirmed record when the server echoes one.
        """
        payload = await self._edit("POST", ENTITIES_PATH, record.to_payload())
        if isinstance(payload, dict) and "uid" in payload:
            return EntityRecord.model_validate(payload)
        return None

    async def delete_entity(self, uid: str) -> None:
        path = f"{ENTITIES_PATH}/{quote(uid, safe='')}"
        await self._edit("DELETE", path)

    async def post_position(self, lat: float, lon: float) -> None:
        """Report the operator's own position."""
        await self._edit("POST", POSITION_PATH, {"lat": lat, "lon": lon})

    async def post_digital_pointer(self, name: str, lat: float, lon: float) -> None:
        """Report a named reference point."""
        await self._require_transport().request_json(
            "POST",
            DIGITAL_POINTER_PATH,
            {"lat": lat, "lon": lon, "name": name},
        )

    async def send_message(self, message: OutgoingMessage) -> dict[str, Conversation] | None:
        """Send a chat message; returns the refreshed message map when echoed."""
        payload = await self._edit("POST", MESSAGES_PATH, message.to_payload())
        if isinstance(payload, dict) and payload and all(isinstance(v, dict) for v in payload.values()):
            return _parse_conversations(payload)
        return None

    async def _edit(self, method: str, path: str, payload: Any = None) -> Any:
        try:
            return await self._require_transport().request_json(method, path, payload)
        except (TakMapAuthenticationError, TakMapEditError):
            raise
        except TakMapTransportError as exc:
            raise TakMapEditError(str(exc), status_code=exc.status_code, endpoint=exc.endpoint) from exc
