"""Ordered waypoint sequence with per-gap automatic segment slots."""

import logging
from typing import Iterable, Optional

from hybrid_route_planner.core.events import EventBus, RouteChanged, RouteUpdated
from hybrid_route_planner.core.geomath import haversine_km
from hybrid_route_planner.models import AutoSegment, Coordinate, Waypoint

logger = logging.getLogger(__name__)

# Ends closer than this count as an already closed loop (10 m).
CLOSED_LOOP_KM = 0.01


class RouteModel:
    """Waypoints in route order plus one auto-segment slot per gap.

    The slot list always has max(0, n - 1) entries. A slot is reset to None
    whenever either of its bracketing waypoints is added, moved or removed.
    """

    def __init__(self, bus: Optional[EventBus] = None):
        self.bus = bus or EventBus()
        self._points: list[Coordinate] = []
        self._segments: list[Optional[AutoSegment]] = []
        self._total_km = 0.0
        self.revision = 0

    # ------------------------------------------------------------------ reads

    @property
    def waypoint_count(self) -> int:
        return len(self._points)

    def __len__(self) -> int:
        return len(self._points)

    @property
    def coordinates(self) -> list[Coordinate]:
        return list(self._points)

    @property
    def waypoints(self) -> list[Waypoint]:
        return [Waypoint(index=i, lat=p.lat, lon=p.lon) for i, p in enumerate(self._points)]

    @property
    def total_distance_km(self) -> float:
        return self._total_km

    @property
    def auto_segments(self) -> list[Optional[AutoSegment]]:
        return list(self._segments)

    # -------------------------------------------------------------- mutators

    def append(self, point: Coordinate) -> int:
        self._points.append(point)
        if len(self._points) > 1:
            self._segments.append(None)
        self._changed("append")
        return len(self._points) - 1

    def insert_at(self, index: int, point: Coordinate) -> int:
        n = len(self._points)
        if not 0 <= index <= n:
            raise IndexError(f"Insert index {index} out of range 0..{n}")
        if index == n:
            return self.append(point)

        self._points.insert(index, point)
        if index == 0:
            self._segments.insert(0, None)
        else:
            # gap (index-1, index) is split into two fresh gaps
            self._segments[index - 1:index] = [None, None]
        self._changed("insert")
        return index

    def remove_at(self, index: int) -> Coordinate:
        n = len(self._points)
        if not 0 <= index < n:
            raise IndexError(f"Waypoint index {index} out of range for {n} waypoint(s)")

        removed = self._points.pop(index)
        if self._segments:
            if index == 0:
                del self._segments[0]
            elif index == n - 1:
                del self._segments[-1]
            else:
                # gaps on both sides merge into one uncomputed gap
                self._segments[index - 1:index + 1] = [None]
        self._changed("remove")
        return removed

    def move_to(self, index: int, point: Coordinate) -> None:
        n = len(self._points)
        if not 0 <= index < n:
            raise IndexError(f"Waypoint index {index} out of range for {n} waypoint(s)")

        self._points[index] = point
        if index > 0:
            self._segments[index - 1] = None
        if index < n - 1:
            self._segments[index] = None
        self._changed("move")

    def clear(self) -> None:
        self._points = []
        self._segments = []
        self._changed("clear")

    def load(self, points: Iterable[Coordinate]) -> None:
        """Replace the whole route with one notification."""
        self._points = list(points)
        self._segments = [None] * max(0, len(self._points) - 1)
        self._changed("load")

    def undo(self) -> Optional[Coordinate]:
        if not self._points:
            return None
        return self.remove_at(len(self._points) - 1)

    def close_loop(self) -> bool:
        """Append the first waypoint unless the route already ends there.

        Needs at least 3 waypoints. Returns True if a point was added.
        """
        if len(self._points) < 3:
            raise ValueError("At least 3 waypoints are needed to close the route.")
        if haversine_km(self._points[0], self._points[-1]) < CLOSED_LOOP_KM:
            return False
        self.append(self._points[0])
        return True

    def insert_midpoint_after(self, index: int) -> int:
        if not 0 <= index < len(self._points) - 1:
            raise IndexError(f"No waypoint follows index {index}")
        a, b = self._points[index], self._points[index + 1]
        return self.insert_at(index + 1, _midpoint(a, b))

    # ---------------------------------------------------------- segment slots

    def set_auto_segment(self, index: int, segment: AutoSegment) -> None:
        if not 0 <= index < len(self._segments):
            raise IndexError(f"Gap index {index} out of range for {len(self._points)} waypoint(s)")
        self._segments[index] = segment

    def clear_auto_segments(self) -> None:
        self._segments = [None] * len(self._segments)

    # -------------------------------------------------------------- internals

    def _changed(self, reason: str) -> None:
        self._total_km = sum(
            haversine_km(self._points[i - 1], self._points[i])
            for i in range(1, len(self._points))
        )
        self.revision += 1
        logger.debug(
            "Route %s: %d waypoint(s), %.3f km", reason, len(self._points), self._total_km,
        )
        self.bus.emit(RouteChanged())
        self.bus.emit(RouteUpdated())


def _midpoint(a: Coordinate, b: Coordinate) -> Coordinate:
    return Coordinate(lat=(a.lat + b.lat) / 2, lon=(a.lon + b.lon) / 2)
