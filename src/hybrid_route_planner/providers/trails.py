"""Trail-oriented routing from Waymarked Trails relations and Thunderforest.

Both sources may legitimately have nothing for an area; they return None
for "no data" and the provider only fails once both came back empty.
"""

import logging
from typing import Optional

from hybrid_route_planner.core.geomath import bounding_box, haversine_km, path_length_km
from hybrid_route_planner.errors import NoRoute, ProviderUnavailable
from hybrid_route_planner.models import (
    Coordinate, RoutingPreferences, RoutingProfile, SegmentResult,
)
from .base import RoutingProvider, geojson_to_coordinates, lonlat_pair, request_json

logger = logging.getLogger(__name__)

WAYMARKED_ROUTE_TYPES = {
    RoutingProfile.WALKING: "hiking",
    RoutingProfile.CYCLING_REGULAR: "cycling",
    RoutingProfile.CYCLING_GRAVEL: "cycling",
    RoutingProfile.CYCLING_MOUNTAIN: "mtb",
}


def estimate_trail_duration_s(
    distance_km: float, profile: RoutingProfile, preferences: RoutingPreferences,
) -> float:
    """Travel time for a trail path from a per-profile base speed."""
    profile = RoutingProfile(profile)
    if profile is RoutingProfile.CYCLING_MOUNTAIN:
        speed = 15.0 if preferences.allow_unpaved else 12.0
    elif profile is RoutingProfile.CYCLING_GRAVEL:
        speed = 16.0 if preferences.prefer_trails else 18.0
    elif profile is RoutingProfile.CYCLING_REGULAR:
        speed = 22.0
    elif profile is RoutingProfile.WALKING:
        speed = 4.0
    else:
        speed = 15.0

    if profile.is_cycling:
        if preferences.avoid_highways:
            speed *= 0.9
        if preferences.prefer_trails:
            speed *= 0.85

    return distance_km / speed * 3600.0


def _relation_bounds(relation: dict) -> Optional[tuple[float, float, float, float]]:
    """(min_lat, min_lon, max_lat, max_lon) from the shapes the list endpoint returns."""
    bounds = relation.get("bounds")
    if isinstance(bounds, (list, tuple)) and len(bounds) == 4:
        min_lon, min_lat, max_lon, max_lat = bounds
    elif isinstance(bounds, dict):
        min_lat = bounds.get("minlat", bounds.get("south"))
        min_lon = bounds.get("minlon", bounds.get("west"))
        max_lat = bounds.get("maxlat", bounds.get("north"))
        max_lon = bounds.get("maxlon", bounds.get("east"))
    elif isinstance(relation.get("bbox"), (list, tuple)) and len(relation["bbox"]) == 4:
        min_lon, min_lat, max_lon, max_lat = relation["bbox"]
    else:
        return None

    values = (min_lat, min_lon, max_lat, max_lon)
    if any(v is None for v in values):
        return None
    try:
        return tuple(float(v) for v in values)
    except (TypeError, ValueError):
        return None


def best_trail_relation(relations: list[dict], start: Coordinate, end: Coordinate) -> Optional[dict]:
    """Pick the relation whose bounds corners lie closest to start and end."""
    best = None
    best_score = float("inf")
    for relation in relations:
        bounds = _relation_bounds(relation)
        if bounds is None:
            continue
        min_lat, min_lon, max_lat, max_lon = bounds
        try:
            sw = Coordinate(lat=min_lat, lon=min_lon)
            ne = Coordinate(lat=max_lat, lon=max_lon)
        except ValueError:
            continue
        score = haversine_km(start, sw) + haversine_km(end, ne)
        if score < best_score:
            best_score = score
            best = relation
    return best


def _relations_from(data) -> list[dict]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("results", "routes", "features"):
            if isinstance(data.get(key), list):
                return data[key]
    return []


def _line_coordinates(geometry: dict) -> list[Coordinate]:
    """Flatten a LineString or MultiLineString into one coordinate list."""
    if not isinstance(geometry, dict):
        return []
    coords = geometry.get("coordinates") or []
    if geometry.get("type") == "MultiLineString":
        coords = [pt for line in coords for pt in line]
    return geojson_to_coordinates(coords)


class WaymarkedTrailsSource:
    name = "waymarkedtrails"

    def __init__(self, settings):
        self.settings = settings

    async def _get(self, url: str, params: Optional[dict] = None):
        return await request_json(
            "GET", url,
            provider=self.name,
            timeout=self.settings.secondary_timeout_s,
            user_agent=self.settings.user_agent,
            params=params,
        )

    async def find_geometry(
        self, start: Coordinate, end: Coordinate, profile: RoutingProfile,
    ) -> Optional[list[Coordinate]]:
        route_type = WAYMARKED_ROUTE_TYPES.get(RoutingProfile(profile))
        if route_type is None:
            logger.info("Waymarked Trails has no %s routes", RoutingProfile(profile).value)
            return None

        base = self.settings.waymarked_url.rstrip("/")
        bbox = bounding_box(start, end).as_query()
        data = await self._get(f"{base}/list", {"bbox": bbox, "type": route_type, "limit": 20})
        relations = _relations_from(data)
        if not relations:
            logger.info("No trail relations within %s", bbox)
            return None

        relation = best_trail_relation(relations, start, end)
        if relation is None:
            logger.info("No trail relation with usable bounds within %s", bbox)
            return None

        geometry = _line_coordinates(relation.get("geometry"))
        if len(geometry) < 2 and relation.get("id") is not None:
            try:
                detail = await self._get(f"{base}/route/{relation['id']}/geometry")
            except ProviderUnavailable:
                logger.warning("Could not fetch geometry for trail relation %s", relation["id"])
                return None
            if isinstance(detail, dict):
                geometry = _line_coordinates(detail.get("geometry", detail))

        return geometry if len(geometry) >= 2 else None


class ThunderforestSource:
    name = "thunderforest"

    def __init__(self, settings):
        self.settings = settings

    async def find_route(self, start: Coordinate, end: Coordinate) -> Optional[SegmentResult]:
        api_key = self.settings.credential("thunderforest")
        if not api_key:
            logger.info("Thunderforest API key not configured, skipping")
            return None

        url = f"{self.settings.thunderforest_url.rstrip('/')}/{api_key}/route/{lonlat_pair(start, end)}"
        data = await request_json(
            "GET", url,
            provider=self.name,
            timeout=self.settings.secondary_timeout_s,
            user_agent=self.settings.user_agent,
        )
        routes = data.get("routes") if isinstance(data, dict) else None
        if not routes:
            return None

        route = routes[0]
        geometry = _line_coordinates(route.get("geometry", {}))
        if len(geometry) < 2:
            return None
        return SegmentResult(
            geometry=geometry,
            distance_m=float(route.get("distance", 0.0)),
            duration_s=float(route.get("duration", 0.0)),
            provider=self.name,
        )


class TrailProvider(RoutingProvider):
    name = "trails"

    def __init__(self, settings):
        super().__init__(settings)
        self.waymarked = WaymarkedTrailsSource(settings)
        self.thunderforest = ThunderforestSource(settings)

    async def compute_segment(
        self,
        start: Coordinate,
        end: Coordinate,
        profile: RoutingProfile,
        preferences: RoutingPreferences,
    ) -> SegmentResult:
        try:
            geometry = await self.waymarked.find_geometry(start, end, profile)
        except ProviderUnavailable as exc:
            logger.warning("Waymarked Trails unavailable: %s", exc)
            geometry = None
        if geometry:
            length_km = path_length_km(geometry)
            logger.info("Trail route found via Waymarked Trails (%.2f km)", length_km)
            return SegmentResult(
                geometry=geometry,
                distance_m=length_km * 1000.0,
                duration_s=estimate_trail_duration_s(length_km, profile, preferences),
                provider=f"{self.name}/{self.waymarked.name}",
            )

        try:
            result = await self.thunderforest.find_route(start, end)
        except ProviderUnavailable as exc:
            logger.warning("Thunderforest unavailable: %s", exc)
            result = None
        if result is not None:
            logger.info("Trail route found via Thunderforest")
            return result.model_copy(update={"provider": f"{self.name}/{self.thunderforest.name}"})

        raise NoRoute("no trail data between the points", self.name)
