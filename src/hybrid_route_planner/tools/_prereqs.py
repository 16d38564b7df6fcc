"""Prerequisite checking helpers for MCP tools."""

from hybrid_route_planner.models import RoutingMode


def require_state(session, *, points: int = 0, hybrid: bool = False) -> None:
    """Raise ValueError with a descriptive message if required state is not set.

    Usage in a tool:
        try:
            require_state(session, points=2, hybrid=True)
        except ValueError as e:
            return f"Error: {e}"
    """
    count = session.route.waypoint_count
    if points and count < points:
        raise ValueError(
            f"The route needs at least {points} waypoint(s), it has {count}. "
            "Add waypoints with add_waypoint."
        )
    if hybrid and session.settings.mode is not RoutingMode.HYBRID:
        raise ValueError(
            "Switch to hybrid mode with set_routing_mode('hybrid') first."
        )
