"""Routing tools: set_routing_mode, set_routing_profile, configure_routing,
calculate_route, clear_auto_segments."""

import logging

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..state import session
from ..core.orchestrator import RunState
from ..core.stats import format_distance, format_duration
from ..models import RoutingEngine, RoutingMode, RoutingPreferences, RoutingProfile
from ._prereqs import require_state

logger = logging.getLogger(__name__)


def _choices(enum_cls) -> str:
    return ", ".join(repr(m.value) for m in enum_cls)


def register_routing_tools(mcp: FastMCP):

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def set_routing_mode(mode: str) -> str:
        """Switch between 'manual' (straight lines between waypoints) and 'hybrid'
        (gaps filled by routing services).

        Leaving hybrid mode discards computed segments.
        **Next:** in hybrid mode, calculate_route.

        Args:
            mode: 'manual' or 'hybrid'.
        """
        try:
            routing_mode = RoutingMode(mode)
        except ValueError:
            return f"Error: Unknown routing mode {mode!r}. Choose one of {_choices(RoutingMode)}."
        session.orchestrator.set_mode(routing_mode)
        return f"Routing mode set to {routing_mode.value}."

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def set_routing_profile(profile: str) -> str:
        """Choose the travel mode used for routing. Clears cached segments.

        Args:
            profile: 'driving', 'walking', 'cycling-regular', 'cycling-gravel'
                or 'cycling-mountain'.
        """
        try:
            routing_profile = RoutingProfile(profile)
        except ValueError:
            return f"Error: Unknown profile {profile!r}. Choose one of {_choices(RoutingProfile)}."
        session.orchestrator.set_profile(routing_profile)
        return f"Routing profile set to {routing_profile.value}. Routing cache cleared."

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def configure_routing(
        engine: str | None = None,
        avoid_highways: bool | None = None,
        prefer_trails: bool | None = None,
        allow_unpaved: bool | None = None,
        ors_api_key: str | None = None,
        thunderforest_api_key: str | None = None,
    ) -> str:
        """Select the routing engine, cycling preferences and API keys. Clears cached segments.

        Engines: 'osrm' (OSRM, then OpenRouteService), 'osrm-trails' (trail
        data first, then OSRM, then OpenRouteService), 'ors' (OpenRouteService,
        then OSRM). OpenRouteService is skipped without an API key; an empty
        string removes a stored key.

        Args:
            engine: Routing engine selection.
            avoid_highways: Prefer routes away from highways.
            prefer_trails: Prefer trails and paths.
            allow_unpaved: Allow unpaved surfaces.
            ors_api_key: OpenRouteService API key.
            thunderforest_api_key: Thunderforest API key (trail fallback).
        """
        try:
            routing_engine = RoutingEngine(engine) if engine is not None else None
        except ValueError:
            return f"Error: Unknown engine {engine!r}. Choose one of {_choices(RoutingEngine)}."

        current = session.settings.preferences
        preferences = RoutingPreferences(
            avoid_highways=current.avoid_highways if avoid_highways is None else avoid_highways,
            prefer_trails=current.prefer_trails if prefer_trails is None else prefer_trails,
            allow_unpaved=current.allow_unpaved if allow_unpaved is None else allow_unpaved,
        )
        session.orchestrator.configure(
            engine=routing_engine,
            preferences=preferences,
            ors_api_key=ors_api_key,
            thunderforest_api_key=thunderforest_api_key,
        )
        return (
            f"Routing configured: engine={session.settings.engine.value}, "
            f"providers={' -> '.join(session.orchestrator.chain.names)}, "
            f"preferences={preferences.model_dump()}. Routing cache cleared."
        )

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False, openWorldHint=True))
    async def calculate_route() -> str:
        """Compute routed segments for every gap between consecutive waypoints.

        Segments already computed for the same endpoints and profile are
        reused from the cache. A new call cancels one still in progress.
        **Requires:** hybrid mode and at least 2 waypoints.
        **Next:** get_status, export_gpx or save_route.
        """
        try:
            require_state(session, points=2, hybrid=True)
        except ValueError as e:
            return f"Error: {e}"

        try:
            outcome = await session.orchestrator.recompute()
        except ValueError as e:
            return f"Error: {e}"

        if outcome.status is RunState.CANCELLED:
            return "Route calculation was cancelled by a newer request or a route edit."
        if outcome.status is RunState.FAILED:
            return f"Error: Route calculation failed: {outcome.error}"

        distance_km = sum(s.distance for s in outcome.segments) / 1000.0
        duration_min = sum(s.duration for s in outcome.segments) / 60.0
        return (
            f"Route calculated: {len(outcome.segments)} segment(s), "
            f"{format_distance(distance_km)}, {format_duration(duration_min)} "
            f"({outcome.provider_calls} provider call(s), {outcome.cache_hits} from cache)."
        )

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True))
    def clear_auto_segments() -> str:
        """Discard computed segments. Waypoints and the routing cache are kept."""
        session.orchestrator.clear_auto_segments()
        return "Automatic segments cleared."
