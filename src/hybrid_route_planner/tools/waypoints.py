"""Waypoint editing tools: add, insert, move, remove, undo, close, clear."""

import logging

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import ValidationError

from ..state import session
from ..core.geomath import find_insertion_segment, web_mercator_pixels
from ..core.stats import format_distance
from ..models import Coordinate
from ._prereqs import require_state

logger = logging.getLogger(__name__)


def _coordinate(lat: float, lon: float) -> Coordinate:
    try:
        return Coordinate(lat=lat, lon=lon)
    except ValidationError as e:
        raise ValueError(f"Invalid coordinate ({lat}, {lon}): {e.errors()[0]['msg']}") from e


def _route_line() -> str:
    r = session.route
    return f"{r.waypoint_count} waypoint(s), {format_distance(r.total_distance_km)}"


def register_waypoint_tools(mcp: FastMCP):

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def add_waypoint(lat: float, lon: float, zoom: float | None = None) -> str:
        """Add a waypoint where the user clicked.

        With `zoom` (the map zoom level of the click), a click within the
        insertion threshold of an existing segment inserts the point into that
        segment; otherwise the point is appended to the end of the route.
        **Next:** calculate_route once there are 2+ waypoints in hybrid mode.

        Args:
            lat: Latitude of the click (degrees).
            lon: Longitude of the click (degrees).
            zoom: Map zoom level used to judge proximity in screen pixels.
        """
        try:
            point = _coordinate(lat, lon)
        except ValueError as e:
            return f"Error: {e}"

        segment = None
        if zoom is not None:
            segment = find_insertion_segment(
                session.route.coordinates, point,
                web_mercator_pixels(zoom),
                threshold_px=session.settings.insertion_threshold_px,
            )

        if segment is None:
            index = session.route.append(point)
            return f"Waypoint {index} appended to the end of the route. Route: {_route_line()}"

        index = session.route.insert_at(segment + 1, point)
        return (
            f"Waypoint inserted at index {index} between waypoints {segment} and {segment + 1}. "
            f"Route: {_route_line()}"
        )

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def insert_waypoint(index: int, lat: float | None = None, lon: float | None = None) -> str:
        """Insert a waypoint at a position in the route.

        Without lat/lon, inserts the midpoint between the waypoints at
        `index - 1` and `index`, so `index` must lie strictly inside the route.

        Args:
            index: Position the new waypoint will occupy (0..waypoint_count).
            lat: Latitude (degrees), optional.
            lon: Longitude (degrees), optional.
        """
        try:
            if lat is None or lon is None:
                if not 0 < index < session.route.waypoint_count:
                    return (
                        f"Error: A midpoint needs waypoints on both sides of index {index}. "
                        "Pass lat/lon to insert at the start or end of the route."
                    )
                session.route.insert_midpoint_after(index - 1)
            else:
                session.route.insert_at(index, _coordinate(lat, lon))
        except (IndexError, ValueError) as e:
            return f"Error: {e}"
        return f"Waypoint inserted at index {index}. Route: {_route_line()}"

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def move_waypoint(index: int, lat: float, lon: float) -> str:
        """Move an existing waypoint (drag). Segments touching it are recomputed on the next calculate_route.

        Args:
            index: Waypoint index.
            lat: New latitude (degrees).
            lon: New longitude (degrees).
        """
        try:
            session.route.move_to(index, _coordinate(lat, lon))
        except (IndexError, ValueError) as e:
            return f"Error: {e}"
        return f"Waypoint {index} moved. Route: {_route_line()}"

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True))
    def remove_waypoint(index: int) -> str:
        """Remove a waypoint from the route.

        Args:
            index: Waypoint index.
        """
        try:
            session.route.remove_at(index)
        except IndexError as e:
            return f"Error: {e}"
        return f"Waypoint {index} removed. Route: {_route_line()}"

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True))
    def undo_waypoint() -> str:
        """Remove the most recently appended (last) waypoint."""
        if session.route.undo() is None:
            return "Error: The route has no waypoints."
        return f"Last waypoint removed. Route: {_route_line()}"

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def close_route() -> str:
        """Close the route into a loop by appending the first waypoint at the end.

        **Requires:** at least 3 waypoints.
        """
        try:
            require_state(session, points=3)
            added = session.route.close_loop()
        except ValueError as e:
            return f"Error: {e}"
        if not added:
            return "The route is already closed."
        return f"Route closed. Route: {_route_line()}"

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True))
    def clear_route() -> str:
        """Remove all waypoints and computed segments. The routing cache is kept."""
        session.orchestrator.clear_auto_segments()
        session.route.clear()
        logger.info("Route cleared")
        return "Route cleared."
