"""In-memory store of computed segments keyed by profile and rounded endpoints."""

import logging
import math
from typing import Optional

from hybrid_route_planner.errors import InvalidCoordinate
from hybrid_route_planner.models import CacheEntry, Coordinate, RoutingProfile

logger = logging.getLogger(__name__)

KEY_PRECISION = 6

CacheKey = tuple[str, float, float, float, float]


def cache_key(profile: RoutingProfile, start: Coordinate, end: Coordinate) -> CacheKey:
    values = (start.lat, start.lon, end.lat, end.lon)
    if not all(math.isfinite(v) for v in values):
        raise InvalidCoordinate(f"Cannot build a cache key from non-finite coordinates {values}")
    lat1, lon1, lat2, lon2 = (round(v, KEY_PRECISION) for v in values)
    return (RoutingProfile(profile).value, lat1, lon1, lat2, lon2)


class RoutingCache:
    """Segments never expire; callers clear the whole store when routing inputs change.

    Entries are immutable and stored with a single assignment, so a lookup
    never observes a half-written entry.
    """

    def __init__(self):
        self._entries: dict[CacheKey, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def get(self, profile: RoutingProfile, start: Coordinate, end: Coordinate) -> Optional[CacheEntry]:
        entry = self._entries.get(cache_key(profile, start, end))
        if entry is None:
            self.misses += 1
        else:
            self.hits += 1
        return entry

    def put(self, profile: RoutingProfile, start: Coordinate, end: Coordinate, entry: CacheEntry) -> None:
        self._entries[cache_key(profile, start, end)] = entry

    def clear(self) -> None:
        if self._entries:
            logger.info("Routing cache cleared (%d entries)", len(self._entries))
        self._entries = {}

    def __len__(self) -> int:
        return len(self._entries)
