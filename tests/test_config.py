from __future__ import annotations

import pytest

from takmap.config import TakMapConfig
from takmap.exceptions import TakMapConfigError

_ENV_KEYS = (
    "TAKMAP_BASE_URL",
    "TAKMAP_STATIC_ICON_URL",
    "TAKMAP_POLL_INTERVAL",
    "TAKMAP_RECONNECT_DELAY",
    "TAKMAP_TOOL_REPORT_INTERVAL",
    "TAKMAP_REQUEST_TIMEOUT",
    "TAKMAP_ICON_SIZE",
    "TAKMAP_PUSH_ENABLED",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = TakMapConfig.from_env()

    assert config.base_url == "http://localhost:8080"
    assert config.poll_interval == 30.0
    assert config.reconnect_delay == 3.0
    assert config.push_enabled is True
    assert config.icon_size == 24


def test_env_values_and_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TAKMAP_BASE_URL", "https://map.example.org")
    monkeypatch.setenv("TAKMAP_POLL_INTERVAL", "5")
    monkeypatch.setenv("TAKMAP_ICON_SIZE", "32")
    monkeypatch.setenv("TAKMAP_PUSH_ENABLED", "off")

    config = TakMapConfig.from_env(poll_interval=10.0)

    assert config.base_url == "https://map.example.org"
    assert config.poll_interval == 10.0
    assert config.icon_size == 32
    assert config.push_enabled is False


def test_unparseable_bool_keeps_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TAKMAP_PUSH_ENABLED", "maybe")

    assert TakMapConfig.from_env().push_enabled is True


def test_non_numeric_env_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TAKMAP_RECONNECT_DELAY", "soon")

    with pytest.raises(TakMapConfigError, match="TAKMAP_RECONNECT_DELAY"):
        TakMapConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"base_url": "ftp://example.org"},
        {"poll_interval": 0},
        {"reconnect_delay": -1},
        {"icon_size": 0},
    ],
)
def test_invalid_values_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(TakMapConfigError):
        TakMapConfig(**kwargs)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("base_url", "push_url"),
    [
        ("http://localhost:8080", "ws://localhost:8080"),
        ("https://map.example.org/", "wss://map.example.org"),
    ],
)
def test_push_url(base_url: str, push_url: str) -> None:
    assert TakMapConfig(base_url=base_url).push_url == push_url
