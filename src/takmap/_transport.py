"""HTTP transport: JSON requests and push-channel connects over aiohttp."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from takmap._constants import AUTH_FAILURE_STATUSES, USER_AGENT
from takmap.config import TakMapConfig
from takmap.exceptions import TakMapAuthenticationError, TakMapPushError, TakMapTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the client.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(self, method: str, path: str, payload: Any = None) -> Any: ...

    async def ws_connect(self, path: str) -> aiohttp.ClientWebSocketResponse: ...


class HttpTransport:
    """aiohttp-backed transport bound to one server."""

    def __init__(self, config: TakMapConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def request_json(self, method: str, path: str, payload: Any = None) -> Any:
        """Send one request and decode the JSON reply.

        Replies that are not JSON (the server answers some POSTs with a
        bare ``Ok``) decode to ``None``.
        """
        url = f"{self._config.base_url.rstrip('/')}{path}"
        headers = {"user-agent": USER_AGENT, "accept": "application/json"}

        _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(
                method,
                url,
                json=payload,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if resp.status in AUTH_FAILURE_STATUSES:
                    raise TakMapAuthenticationError(
                        f"HTTP {resp.status} from {path}: not authenticated",
                        status_code=resp.status,
                        endpoint=path,
                    )
                if not 200 <= resp.status < 300:
                    raise TakMapTransportError(
                        f"HTTP {resp.status} from {path}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=path,
                    )
        except TakMapTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise TakMapTransportError(
                f"Request to {path} failed: {exc}",
                endpoint=path,
            ) from exc

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            if method == "GET":
                raise TakMapTransportError(
                    f"Invalid JSON from {path}: {text[:200]}",
                    endpoint=path,
                ) from None
            return None

    async def ws_connect(self, path: str) -> aiohttp.ClientWebSocketResponse:
        url = f"{self._config.push_url}{path}"
        _logger.debug("WS connect %s", url)
        try:
            return await self._http.ws_connect(url, headers={"user-agent": USER_AGENT}, heartbeat=30.0)
        except aiohttp.WSServerHandshakeError as exc:
            if exc.status in AUTH_FAILURE_STATUSES:
                raise TakMapAuthenticationError(
                    f"Push handshake rejected: HTTP {exc.status}",
                    status_code=exc.status,
                    endpoint=path,
                ) from exc
            raise TakMapPushError(f"Push handshake to {path} failed: {exc}") from exc
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise TakMapPushError(f"Push connect to {path} failed: {exc}") from exc
