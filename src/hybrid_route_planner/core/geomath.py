"""Geographic helpers: distances, segment projection, insertion lookup."""

import math
from typing import Callable, Optional, Sequence

from pydantic import BaseModel, Field

from hybrid_route_planner.models import Coordinate

EARTH_RADIUS_KM = 6371.0
TILE_SIZE_PX = 256

PixelProjector = Callable[[Coordinate], tuple[float, float]]


class Projection(BaseModel):
    """Result of projecting a point onto a segment."""
    closest_point: Coordinate
    t: float = Field(ge=0, le=1)
    perpendicular_km: float = Field(ge=0)


class BoundingBox(BaseModel):
    south: float = Field(ge=-90, le=90)
    west: float = Field(ge=-180, le=180)
    north: float = Field(ge=-90, le=90)
    east: float = Field(ge=-180, le=180)

    def as_query(self) -> str:
        """west,south,east,north as used by tile/route APIs."""
        return f"{self.west},{self.south},{self.east},{self.north}"


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    lat1, lon1 = math.radians(a.lat), math.radians(a.lon)
    lat2, lon2 = math.radians(b.lat), math.radians(b.lon)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2)
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def _to_xy_km(origin: Coordinate, p: Coordinate) -> tuple[float, float]:
    """Equirectangular approximation around origin, in km."""
    x = math.radians(p.lon - origin.lon) * EARTH_RADIUS_KM * math.cos(math.radians(origin.lat))
    y = math.radians(p.lat - origin.lat) * EARTH_RADIUS_KM
    return x, y


def _from_xy_km(origin: Coordinate, x: float, y: float) -> Coordinate:
    lat = origin.lat + math.degrees(y / EARTH_RADIUS_KM)
    lon = origin.lon + math.degrees(x / (EARTH_RADIUS_KM * math.cos(math.radians(origin.lat))))
    return Coordinate(lat=max(-90.0, min(90.0, lat)), lon=max(-180.0, min(180.0, lon)))


def _clamped_param(
    p: tuple[float, float], a: tuple[float, float], b: tuple[float, float],
) -> Optional[float]:
    """Projection parameter of p on a->b clamped to [0, 1], None if a == b."""
    vx, vy = b[0] - a[0], b[1] - a[1]
    seg_len2 = vx * vx + vy * vy
    if seg_len2 == 0:
        return None
    t = ((p[0] - a[0]) * vx + (p[1] - a[1]) * vy) / seg_len2
    return min(1.0, max(0.0, t))


def project_onto_segment(point: Coordinate, seg_start: Coordinate, seg_end: Coordinate) -> Projection:
    """Project point onto the segment seg_start->seg_end.

    Works in a local planar frame centered on the point, which is accurate
    for the short spans between waypoints.
    """
    a = _to_xy_km(point, seg_start)
    b = _to_xy_km(point, seg_end)
    t = _clamped_param((0.0, 0.0), a, b)
    if t is None:
        return Projection(
            closest_point=seg_start, t=0.0,
            perpendicular_km=haversine_km(point, seg_start),
        )

    mx = a[0] + t * (b[0] - a[0])
    my = a[1] + t * (b[1] - a[1])
    if t == 0.0:
        closest = seg_start
    elif t == 1.0:
        closest = seg_end
    else:
        closest = _from_xy_km(point, mx, my)
    return Projection(closest_point=closest, t=t, perpendicular_km=haversine_km(point, closest))


def find_insertion_segment(
    route: Sequence[Coordinate],
    click: Coordinate,
    to_pixels: PixelProjector,
    threshold_px: float = 30.0,
) -> Optional[int]:
    """Return the index i of the segment (route[i], route[i+1]) nearest to click.

    Distances are measured in rendered pixels through `to_pixels`, so
    sensitivity follows the current map zoom. Only segments closer than
    `threshold_px` qualify; the lowest index wins ties. None means the
    click is not near the route and the point should be appended.
    """
    if len(route) < 2:
        return None

    cx, cy = to_pixels(click)
    best_index: Optional[int] = None
    best_distance = math.inf

    for i in range(len(route) - 1):
        a = to_pixels(route[i])
        b = to_pixels(route[i + 1])
        t = _clamped_param((cx, cy), a, b)
        if t is None:
            px, py = a
        else:
            px = a[0] + t * (b[0] - a[0])
            py = a[1] + t * (b[1] - a[1])
        distance = math.hypot(cx - px, cy - py)

        if distance < threshold_px and distance < best_distance:
            best_distance = distance
            best_index = i

    return best_index


def web_mercator_pixels(zoom: float) -> PixelProjector:
    """Build a projector to world pixel coordinates at a map zoom level."""
    scale = TILE_SIZE_PX * 2.0 ** zoom

    def project(c: Coordinate) -> tuple[float, float]:
        lat = max(-85.05112878, min(85.05112878, c.lat))
        x = (c.lon + 180.0) / 360.0 * scale
        y = (1.0 - math.asinh(math.tan(math.radians(lat))) / math.pi) / 2.0 * scale
        return x, y

    return project


def bounding_box(a: Coordinate, b: Coordinate, padding_deg: float = 0.01) -> BoundingBox:
    """Box enclosing both points plus a fixed padding in degrees."""
    return BoundingBox(
        south=max(-90.0, min(a.lat, b.lat) - padding_deg),
        west=max(-180.0, min(a.lon, b.lon) - padding_deg),
        north=min(90.0, max(a.lat, b.lat) + padding_deg),
        east=min(180.0, max(a.lon, b.lon) + padding_deg),
    )


def cumulative_km(points: Sequence[Coordinate]) -> list[float]:
    """cum[i] = km from the first point to point i."""
    if not points:
        return []
    cum = [0.0]
    for i in range(1, len(points)):
        cum.append(cum[-1] + haversine_km(points[i - 1], points[i]))
    return cum


def path_length_km(points: Sequence[Coordinate]) -> float:
    cum = cumulative_km(points)
    return cum[-1] if cum else 0.0


def point_at_distance(points: Sequence[Coordinate], target_km: float) -> Optional[Coordinate]:
    """Linearly interpolated point target_km along the path, None past the end."""
    if len(points) < 2 or target_km < 0:
        return None

    travelled = 0.0
    for i in range(1, len(points)):
        a, b = points[i - 1], points[i]
        step = haversine_km(a, b)
        if step > 0 and travelled + step >= target_km:
            ratio = (target_km - travelled) / step
            return Coordinate(
                lat=a.lat + (b.lat - a.lat) * ratio,
                lon=a.lon + (b.lon - a.lon) * ratio,
            )
        travelled += step
    return None
