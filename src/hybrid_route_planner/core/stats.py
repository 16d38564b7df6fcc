"""Route statistics shown next to the map."""

import math
from typing import Sequence

from hybrid_route_planner.core.geomath import path_length_km, point_at_distance
from hybrid_route_planner.models import Coordinate

# (route shorter than km, marker every km)
MARKER_INTERVALS = ((10, 1), (20, 2), (50, 5), (100, 10))
LONG_ROUTE_INTERVAL_KM = 20


def marker_interval_km(total_km: float) -> int:
    for limit, interval in MARKER_INTERVALS:
        if total_km < limit:
            return interval
    return LONG_ROUTE_INTERVAL_KM


def distance_markers(points: Sequence[Coordinate]) -> list[dict]:
    """Points at whole-kilometre marks along the path, spaced by route length.

    Routes shorter than 1 km get none; the end of the route is not marked.
    """
    total_km = path_length_km(points)
    if len(points) < 2 or total_km < 1:
        return []

    interval = marker_interval_km(total_km)
    markers = []
    km = interval
    while km < total_km:
        point = point_at_distance(points, km)
        if point is not None:
            markers.append({"km": km, "lat": round(point.lat, 6), "lon": round(point.lon, 6)})
        km += interval
    return markers


def estimated_minutes(distance_km: float, speed_kmh: float) -> float:
    if distance_km <= 0 or speed_kmh <= 0:
        return 0.0
    return distance_km / speed_kmh * 60.0


def format_duration(total_minutes: float) -> str:
    """Human-readable duration, e.g. '≈ 1 d 2 h 5 min'."""
    total_minutes = max(0.0, total_minutes)
    days = math.floor(total_minutes / (24 * 60))
    hours = math.floor((total_minutes % (24 * 60)) / 60)
    minutes = round(total_minutes % 60)
    if minutes == 60:
        hours += 1
        minutes = 0
        if hours == 24:
            days += 1
            hours = 0

    parts = []
    if days > 0:
        parts.append(f"{days} d")
    if hours > 0:
        parts.append(f"{hours} h")
    if minutes > 0 or not parts:
        parts.append(f"{minutes} min")
    return "≈ " + " ".join(parts)


def format_distance(distance_km: float) -> str:
    if distance_km < 1:
        return f"{distance_km * 1000:.0f} m"
    return f"{distance_km:.2f} km"
