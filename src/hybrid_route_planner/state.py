"""Session state for the hybrid-route-planner MCP server.

Holds the event bus, the route being edited, the routing cache and the
orchestrator that fills gaps between waypoints.
"""

from typing import Optional

from hybrid_route_planner.config import RoutingSettings
from hybrid_route_planner.core.cache import RoutingCache
from hybrid_route_planner.core.events import EventBus
from hybrid_route_planner.core.geomath import path_length_km
from hybrid_route_planner.core.orchestrator import HybridOrchestrator
from hybrid_route_planner.core.route import RouteModel
from hybrid_route_planner.core.stats import distance_markers, estimated_minutes, format_duration


class PlannerSession:
    def __init__(self, settings: Optional[RoutingSettings] = None, **orchestrator_kwargs):
        self.bus = EventBus()
        self.route = RouteModel(self.bus)
        self.cache = RoutingCache()
        self.orchestrator = HybridOrchestrator(
            self.route, settings or RoutingSettings(), cache=self.cache, **orchestrator_kwargs,
        )
        self.name = ""

    @property
    def settings(self) -> RoutingSettings:
        return self.orchestrator.settings

    def reset(self, settings: Optional[RoutingSettings] = None, **orchestrator_kwargs) -> None:
        """Start over with an empty route (used on load and in tests)."""
        self.orchestrator.cancel()
        self.__init__(settings or self.settings, **orchestrator_kwargs)

    def summary(self) -> dict:
        s = self.settings
        segments = self.route.auto_segments
        computed = [seg for seg in segments if seg is not None]
        full = self.orchestrator.full_route()
        distance_km = self.route.total_distance_km
        return {
            "name": self.name,
            "route": {
                "waypoints": [w.model_dump() for w in self.route.waypoints],
                "waypoint_count": self.route.waypoint_count,
                "revision": self.route.revision,
                "total_distance_km": round(distance_km, 3),
                "estimated_time": format_duration(
                    estimated_minutes(distance_km, s.average_speed_kmh)
                ) if distance_km > 0 else None,
            },
            "routing": {
                "mode": s.mode.value,
                "profile": s.profile.value,
                "engine": s.engine.value,
                "providers": self.orchestrator.chain.names,
                "preferences": s.preferences.model_dump(),
                "ors_api_key_set": s.ors_api_key is not None,
                "thunderforest_api_key_set": s.thunderforest_api_key is not None,
                "run_state": self.orchestrator.state.value,
            },
            "auto_segments": {
                "gaps": len(segments),
                "computed": len(computed),
                "distance_km": round(sum(seg.distance for seg in computed) / 1000.0, 3),
                "duration_min": round(sum(seg.duration for seg in computed) / 60.0, 1),
            },
            "full_route": {
                "points": len(full),
                "distance_km": round(path_length_km(full), 3),
                "distance_markers": distance_markers(full),
            },
            "cache": {
                "entries": len(self.cache),
                "hits": self.cache.hits,
                "misses": self.cache.misses,
            },
        }


# Global session, one per MCP server process
session = PlannerSession()
