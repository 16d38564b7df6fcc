"""OSRM: the primary general-purpose router."""

import logging

from hybrid_route_planner.errors import NoRoute
from hybrid_route_planner.models import (
    Coordinate, RoutingPreferences, RoutingProfile, SegmentResult,
)
from .base import RoutingProvider, geojson_to_coordinates, lonlat_pair, request_json

logger = logging.getLogger(__name__)

OSRM_PROFILES = {
    RoutingProfile.DRIVING: "driving",
    RoutingProfile.WALKING: "walking",
    RoutingProfile.CYCLING_REGULAR: "cycling",
    RoutingProfile.CYCLING_GRAVEL: "cycling",
    RoutingProfile.CYCLING_MOUNTAIN: "cycling",
}


class OsrmProvider(RoutingProvider):
    name = "osrm"

    async def compute_segment(
        self,
        start: Coordinate,
        end: Coordinate,
        profile: RoutingProfile,
        preferences: RoutingPreferences,
    ) -> SegmentResult:
        osrm_profile = OSRM_PROFILES[RoutingProfile(profile)]
        if osrm_profile == "cycling":
            # OSRM has no per-request switches for these
            logger.debug("OSRM ignores cycling preferences %s", preferences.model_dump())

        url = f"{self.settings.osrm_url.rstrip('/')}/route/v1/{osrm_profile}/{lonlat_pair(start, end)}"
        data = await request_json(
            "GET", url,
            provider=self.name,
            timeout=self.settings.request_timeout_s,
            user_agent=self.settings.user_agent,
            params={
                "overview": "full",
                "geometries": "geojson",
                "steps": "false",
                "alternatives": "false",
            },
        )

        if data.get("code") != "Ok" or not data.get("routes"):
            raise NoRoute(data.get("message") or f"code {data.get('code')!r}", self.name)

        route = data["routes"][0]
        geometry = geojson_to_coordinates((route.get("geometry") or {}).get("coordinates") or [])
        if len(geometry) < 2:
            raise NoRoute("route has no geometry", self.name)

        return SegmentResult(
            geometry=geometry,
            distance_m=float(route.get("distance", 0.0)),
            duration_s=float(route.get("duration", 0.0)),
            provider=self.name,
        )
