from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from takmap.icons import IconResolver
from takmap.models.entity import EntityRecord
from takmap.models.render import IconDescriptor, MarkerSpec
from takmap.render import MarkerRenderer, build_tooltip
from takmap.state.store import EntityStore


class _FakeSymbols:
    def render(self, sidc: str, options: Mapping[str, Any]) -> IconDescriptor:
        return IconDescriptor(uri=f"symbol:{sidc}", anchor_x=12, anchor_y=12)


@dataclass
class _Marker:
    spec: MarkerSpec
    on_click: Callable[[], None] | None
    on_drag_end: Callable[[float, float], None] | None
    icon_updates: int = 0


@dataclass
class _FakeView:
    markers: list[_Marker] = field(default_factory=list)
    views: list[tuple[float, float, int | None]] = field(default_factory=list)

    def create_marker(
        self,
        spec: MarkerSpec,
        *,
        on_click: Callable[[], None] | None = None,
        on_drag_end: Callable[[float, float], None] | None = None,
    ) -> _Marker:
        marker = _Marker(spec=spec, on_click=on_click, on_drag_end=on_drag_end)
        self.markers.append(marker)
        return marker

    def update_marker(self, handle: _Marker, spec: MarkerSpec, *, icon_changed: bool) -> None:
        if icon_changed:
            handle.icon_updates += 1
        else:
            spec = MarkerSpec(spec.lat, spec.lon, handle.spec.icon, spec.tooltip_html, spec.draggable)
        handle.spec = spec

    def remove_marker(self, handle: _Marker) -> None:
        self.markers.remove(handle)

    def set_view(self, lat: float, lon: float, zoom: int | None = None) -> None:
        self.views.append((lat, lon, zoom))


def _record(uid: str, **fields: object) -> EntityRecord:
    return EntityRecord.model_validate({"uid": uid, **fields})


def _setup(selected: list[str] | None = None) -> tuple[EntityStore, MarkerRenderer, _FakeView]:
    view = _FakeView()
    renderer = MarkerRenderer(
        view,
        IconResolver(_FakeSymbols()),
        on_select=selected.append if selected is not None else None,
    )
    return EntityStore(observers=[renderer]), renderer, view


def test_marker_exists_exactly_while_entity_has_coords() -> None:
    store, renderer, view = _setup()

    store.reconcile([_record("a", sidc="SFGPU-----", lat=1.0, lon=2.0), _record("b", sidc="SFGPU-----")])
    assert renderer.has_marker("a")
    assert not renderer.has_marker("b")
    assert len(view.markers) == 1

    store.reconcile([_record("a", lat=0.0, lon=0.0), _record("b", lat=5.0, lon=6.0)])
    assert not renderer.has_marker("a")
    assert renderer.has_marker("b")
    assert len(view.markers) == 1

    store.reconcile([])
    assert renderer.marker_count == 0
    assert view.markers == []


def test_contact_at_origin_gets_no_marker() -> None:
    store, renderer, view = _setup()

    store.upsert(_record("c", category="contact", team="Blue", role="HQ", lat=0.0, lon=0.0))

    assert "c" in store
    assert not renderer.has_marker("c")
    assert view.markers == []


def test_offline_scenario_redraws_icon_then_removes_marker() -> None:
    store, renderer, view = _setup()
    online = _record("a", category="contact", team="Red", role="Medic", status="Online", lat=10.0, lon=20.0)

    store.reconcile([online])
    marker = renderer.marker("a")
    first_icon = marker.spec.icon

    store.reconcile([online.model_copy(update={"status": "Offline"})])
    assert marker.icon_updates == 1
    assert marker.spec.icon != first_icon
    assert "%23555" in marker.spec.icon.uri
    assert (marker.spec.lat, marker.spec.lon) == (10.0, 20.0)

    store.reconcile([])
    assert "a" not in store
    assert view.markers == []


def test_position_update_moves_without_icon_regeneration() -> None:
    store, renderer, _view = _setup()
    store.reconcile([_record("a", sidc="SFGPU-----", lat=1.0, lon=1.0)])
    marker = renderer.marker("a")

    store.reconcile([_record("a", sidc="SFGPU-----", lat=2.0, lon=3.0)])

    assert marker.icon_updates == 0
    assert (marker.spec.lat, marker.spec.lon) == (2.0, 3.0)
    assert marker.spec.icon == IconDescriptor(uri="symbol:SFGPU-----", anchor_x=12, anchor_y=12)


def test_click_selects_entity() -> None:
    selected: list[str] = []
    store, renderer, _view = _setup(selected)
    store.reconcile([_record("a", sidc="SFGPU-----", lat=1.0, lon=1.0)])

    on_click = renderer.marker("a").on_click
    assert on_click is not None
    on_click()

    assert selected == ["a"]


def test_only_local_entities_are_draggable() -> None:
    store, renderer, _view = _setup()
    store.reconcile([_record("remote", sidc="SFGPU-----", lat=1.0, lon=1.0)])
    store.add_local(_record("mine", category="point", lat=2.0, lon=2.0))

    assert renderer.marker("remote").on_drag_end is None
    drag = renderer.marker("mine").on_drag_end
    assert drag is not None
    assert renderer.marker("mine").spec.draggable

    drag(4.5, 5.5)

    mine = store.get("mine")
    assert mine is not None
    assert (mine.lat, mine.lon) == (4.5, 5.5)


def test_locked_entity_recentres_view() -> None:
    store, renderer, view = _setup()
    store.reconcile([_record("a", sidc="SFGPU-----", lat=1.0, lon=1.0)])
    renderer.locked_uid = "a"

    store.reconcile([_record("a", lat=7.0, lon=8.0)])

    assert view.views[-1] == (7.0, 8.0, None)

    store.reconcile([])
    assert renderer.locked_uid is None


def test_tooltip_template() -> None:
    record = _record(
        "a",
        callsign="Eagle <1>",
        team="Blue",
        role="HQ",
        speed=12.4,
        sidc="SFAPMF----",
        hae=350.0,
        text="line one\nline two; line three",
    )

    tooltip = build_tooltip(record)

    assert tooltip == (
        "<b>Eagle &lt;1&gt;</b><br/>"
        "Blue HQ<br/>"
        "Speed: 12 m/s<br/>"
        "hae: 350 m<br/>"
        "line one<br/>line two<br/>line three"
    )


def test_tooltip_minimal() -> None:
    assert build_tooltip(_record("a", callsign="Bravo")) == "<b>Bravo</b><br/>"
