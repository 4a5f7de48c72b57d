"""Distance/bearing helper and coordinate formatting."""

from __future__ import annotations

import math

EARTH_RADIUS_M = 6_371_000.0


def distance_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> tuple[float, float]:
    """Great-circle distance (m, haversine) and initial true bearing (deg) from point 1 to 2."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    bearing = math.degrees(math.atan2(y, x))
    if bearing < 0:
        bearing += 360

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c, bearing


def format_distance_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> str:
    """``"850m 45.0°T"`` below 10 km, ``"12.3km 45.0°T"`` above."""
    distance, bearing = distance_bearing(lat1, lon1, lat2, lon2)
    if distance < 10_000:
        return f"{distance:.0f}m {bearing:.1f}°T"
    return f"{distance / 1000:.1f}km {bearing:.1f}°T"


def format_coords(lat: float, lon: float) -> str:
    return f"{lat:.6f},{lon:.6f}"


def mps_to_kmh(speed: float) -> float:
    return speed * 3.6
