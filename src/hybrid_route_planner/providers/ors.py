"""OpenRouteService directions; needs a caller-supplied API key."""

import logging

from hybrid_route_planner.errors import MissingCredential, NoRoute
from hybrid_route_planner.models import (
    Coordinate, RoutingPreferences, RoutingProfile, SegmentResult,
)
from .base import RoutingProvider, geojson_to_coordinates, request_json

logger = logging.getLogger(__name__)

ORS_PROFILES = {
    RoutingProfile.DRIVING: "driving-car",
    RoutingProfile.WALKING: "foot-walking",
    RoutingProfile.CYCLING_REGULAR: "cycling-regular",
    RoutingProfile.CYCLING_GRAVEL: "cycling-regular",
    RoutingProfile.CYCLING_MOUNTAIN: "cycling-mountain",
}


def _request_body(
    start: Coordinate, end: Coordinate, profile: RoutingProfile, preferences: RoutingPreferences,
) -> dict:
    body: dict = {
        "coordinates": [[start.lon, start.lat], [end.lon, end.lat]],
        "instructions": False,
        "geometry_simplify": False,
    }
    if preferences.avoid_highways and profile is RoutingProfile.DRIVING:
        body["options"] = {"avoid_features": ["highways"]}
    return body


class OrsProvider(RoutingProvider):
    name = "openrouteservice"

    async def compute_segment(
        self,
        start: Coordinate,
        end: Coordinate,
        profile: RoutingProfile,
        preferences: RoutingPreferences,
    ) -> SegmentResult:
        api_key = self.settings.credential("ors")
        if not api_key:
            raise MissingCredential("API key not configured", self.name)

        profile = RoutingProfile(profile)
        url = f"{self.settings.ors_url.rstrip('/')}/v2/directions/{ORS_PROFILES[profile]}/geojson"
        data = await request_json(
            "POST", url,
            provider=self.name,
            timeout=self.settings.request_timeout_s,
            user_agent=self.settings.user_agent,
            json=_request_body(start, end, profile, preferences),
            headers={"Authorization": api_key},
        )

        features = data.get("features") or []
        if not features:
            raise NoRoute("no route found", self.name)

        feature = features[0]
        geometry = geojson_to_coordinates((feature.get("geometry") or {}).get("coordinates") or [])
        if len(geometry) < 2:
            raise NoRoute("route has no geometry", self.name)

        properties = feature.get("properties") or {}
        segments = properties.get("segments") or []
        summary = segments[0] if segments else (properties.get("summary") or {})
        return SegmentResult(
            geometry=geometry,
            distance_m=float(summary.get("distance", 0.0)),
            duration_s=float(summary.get("duration", 0.0)),
            provider=self.name,
        )
