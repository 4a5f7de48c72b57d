#!/usr/bin/env python3
"""Follow a map server live and print every marker change.

Runs a :class:`takmap.MapController` against a console map view so the
poll/push feed, reconciliation and icon decisions can be observed
without a browser.

Usage
-----
::

    export TAKMAP_BASE_URL="http://localhost:8080"
    python scripts/watch_map.py --duration 120
"""

from __future__ import annotations

import argparse
import asyncio
import itertools
import logging
import signal
import sys
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from takmap import (  # noqa: E402
    ConnectionStatus,
    IconDescriptor,
    MapController,
    MarkerSpec,
    TakMapClient,
    TakMapConfig,
    TakMapError,
)


class TextSymbolRenderer:
    """Stands in for a browser symbol library: the icon is the code itself."""

    def render(self, sidc: str, options: Mapping[str, Any]) -> IconDescriptor:
        size = int(options.get("size", 24))
        return IconDescriptor(uri=f"sidc:{sidc}", anchor_x=size // 2, anchor_y=size // 2)


@dataclass
class _Marker:
    ident: int
    spec: MarkerSpec


class ConsoleMapView:
    """Map view that prints marker lifecycle events."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.markers: dict[int, _Marker] = {}

    def create_marker(
        self,
        spec: MarkerSpec,
        *,
        on_click: Callable[[], None] | None = None,
        on_drag_end: Callable[[float, float], None] | None = None,
    ) -> _Marker:
        marker = _Marker(ident=next(self._ids), spec=spec)
        self.markers[marker.ident] = marker
        icon = spec.icon.uri[:40] if spec.icon is not None else "-"
        print(f"[map] + #{marker.ident} at {spec.lat:.5f},{spec.lon:.5f} icon={icon}")
        return marker

    def update_marker(self, handle: _Marker, spec: MarkerSpec, *, icon_changed: bool) -> None:
        if icon_changed or (spec.lat, spec.lon) != (handle.spec.lat, handle.spec.lon):
            flag = " (icon)" if icon_changed else ""
            print(f"[map] ~ #{handle.ident} at {spec.lat:.5f},{spec.lon:.5f}{flag}")
        handle.spec = spec

    def remove_marker(self, handle: _Marker) -> None:
        self.markers.pop(handle.ident, None)
        print(f"[map] - #{handle.ident}")

    def set_view(self, lat: float, lon: float, zoom: int | None = None) -> None:
        print(f"[map] view {lat:.5f},{lon:.5f} zoom={zoom if zoom is not None else '-'}")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Follow a map server and print marker changes.")
    parser.add_argument("--duration", type=float, default=0.0, help="Stop after N seconds (0 = run until Ctrl-C)")
    parser.add_argument("--no-push", action="store_true", help="Stay in poll mode")
    parser.add_argument("--poll-interval", type=float, help="Override the poll interval in seconds")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args()


async def _watch(args: argparse.Namespace) -> int:
    overrides: dict[str, Any] = {}
    if args.no_push:
        overrides["push_enabled"] = False
    if args.poll_interval:
        overrides["poll_interval"] = args.poll_interval
    config = TakMapConfig.from_env(**overrides)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)

    def on_status(status: ConnectionStatus) -> None:
        print(f"[watch] push {status}")

    def on_error(exc: TakMapError) -> None:
        print(f"[watch] edit failed: {exc}", file=sys.stderr)

    def on_reload_required(exc: TakMapError) -> None:
        print(f"[watch] session rejected: {exc}", file=sys.stderr)
        stop.set()

    view = ConsoleMapView()
    started = time.time()
    async with TakMapClient(config) as client:
        controller = MapController(
            client,
            view,
            TextSymbolRenderer(),
            on_error=on_error,
            on_status=on_status,
            on_reload_required=on_reload_required,
        )
        try:
            await controller.start()
        except TakMapError as exc:
            print(f"[watch] Startup failed: {exc}", file=sys.stderr)
            return 2
        try:
            if args.duration > 0:
                try:
                    await asyncio.wait_for(stop.wait(), timeout=args.duration)
                except TimeoutError:
                    print(f"[watch] Reached --duration={args.duration}s, stopping.")
            else:
                await stop.wait()
        finally:
            await controller.stop()

        online, total = controller.store.contacts_online()
        print(f"[watch] ran {time.time() - started:.0f}s")
        print(f"[watch]   entities : {len(controller.store)}")
        print(f"[watch]   contacts : {online}/{total} online")
        print(f"[watch]   markers  : {len(view.markers)}")
        print(f"[watch]   unread   : {controller.messages.total_unread()}")
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_watch(args))


if __name__ == "__main__":
    raise SystemExit(_main())
