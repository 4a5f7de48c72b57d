"""Client configuration for takmap."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from takmap._constants import BASE_URL
from takmap.exceptions import TakMapConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise TakMapConfigError(f"{env_key} must be numeric, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class TakMapConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Server root used for REST calls and the push channel.
    poll_interval : float
        Seconds between full entity-list fetches while the push channel
        is not connected.
    reconnect_delay : float
        Seconds to wait before reopening a closed push channel.
    tool_report_interval : float
        Seconds between reports of the ``dp1`` tool position.
    request_timeout : float
        Total timeout in seconds for a single REST request.
    push_enabled : bool
        Open the push channel at startup.  When ``False`` the client
        stays in poll mode.
    icon_size : int
        Pixel size of generated marker icons.
    static_icon_url : str
        URL prefix of the fixed image assets (way-points, tool icons).
    tooltip_text : bool
        Render speed/direction/altitude labels into military symbols.
    """

    base_url: str = BASE_URL
    poll_interval: float = 30.0
    reconnect_delay: float = 3.0
    tool_report_interval: float = 30.0
    request_timeout: float = 5.0
    push_enabled: bool = True
    icon_size: int = 24
    static_icon_url: str = "/static/icons"
    tooltip_text: bool = True

    def __post_init__(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            raise TakMapConfigError(f"base_url must be an http(s) URL, got {self.base_url!r}")
        for name in ("poll_interval", "reconnect_delay", "tool_report_interval", "request_timeout"):
            if getattr(self, name) <= 0:
                raise TakMapConfigError(f"{name} must be positive")
        if self.icon_size <= 0:
            raise TakMapConfigError("icon_size must be positive")

    @property
    def push_url(self) -> str:
        """Push channel URL derived from ``base_url`` (``ws://`` or ``wss://``)."""
        root = self.base_url.rstrip("/")
        if root.startswith("https://"):
            return "wss://" + root[len("https://") :]
        return "ws://" + root[len("http://") :]

    @classmethod
    def from_env(cls, **overrides: Any) -> TakMapConfig:
        """Create configuration from environment variables.

        Reads optional ``TAKMAP_*`` variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        TakMapConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "TAKMAP_BASE_URL": "base_url",
            "TAKMAP_STATIC_ICON_URL": "static_icon_url",
        }
        _ENV_FLOAT_MAP = {
            "TAKMAP_POLL_INTERVAL": "poll_interval",
            "TAKMAP_RECONNECT_DELAY": "reconnect_delay",
            "TAKMAP_TOOL_REPORT_INTERVAL": "tool_report_interval",
            "TAKMAP_REQUEST_TIMEOUT": "request_timeout",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, float)

        size_env = env.get("TAKMAP_ICON_SIZE")
        if size_env is not None and "icon_size" not in overrides:
            config_kwargs["icon_size"] = _env_number("TAKMAP_ICON_SIZE", size_env, int)

        if "push_enabled" not in overrides:
            config_kwargs["push_enabled"] = _env_bool(env.get("TAKMAP_PUSH_ENABLED"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
