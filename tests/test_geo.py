from __future__ import annotations

import pytest

from takmap.geo import distance_bearing, format_coords, format_distance_bearing, mps_to_kmh


def test_one_degree_of_latitude() -> None:
    distance, bearing = distance_bearing(0.0, 0.0, 1.0, 0.0)

    assert distance == pytest.approx(111_195, rel=1e-3)
    assert bearing == pytest.approx(0.0)


def test_bearing_is_normalised_to_positive_degrees() -> None:
    _, west = distance_bearing(0.0, 0.0, 0.0, -1.0)
    _, east = distance_bearing(0.0, 0.0, 0.0, 1.0)

    assert west == pytest.approx(270.0)
    assert east == pytest.approx(90.0)


def test_same_point() -> None:
    distance, _ = distance_bearing(59.9, 30.3, 59.9, 30.3)

    assert distance == 0.0


def test_formatting() -> None:
    assert format_distance_bearing(0.0, 0.0, 0.001, 0.0) == "111m 0.0°T"
    assert format_distance_bearing(0.0, 0.0, 1.0, 0.0) == "111.2km 0.0°T"
    assert format_coords(1.23456789, -2.5) == "1.234568,-2.500000"
    assert mps_to_kmh(10.0) == pytest.approx(36.0)
