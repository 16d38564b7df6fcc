"""Route persistence tools: save_route, load_route, export_gpx, import_gpx."""

import json
import logging
from pathlib import Path

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import ValidationError

from ..state import session
from ..core.gpx import parse_gpx_file, route_to_gpx
from ..models import RouteExport, RoutingMode
from ._prereqs import require_state

logger = logging.getLogger(__name__)


def _default_path() -> Path:
    return Path.home() / ".cache" / "hybrid-route-planner" / "route.json"


def _validate_output_path(output_path: str) -> None:
    """Raise ValueError if output_path resolves outside the user's home directory."""
    resolved = Path(output_path).resolve()
    home = Path.home().resolve()
    try:
        resolved.relative_to(home)
    except ValueError:
        raise ValueError(
            f"Output path {output_path!r} is outside the home directory. "
            "Use a path within your home directory."
        )


def register_session_tools(mcp: FastMCP):

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True))
    def save_route(name: str, path: str | None = None) -> str:
        """Save the current route as JSON: waypoints, full route, mode, profile and segments.

        **Requires:** at least 2 waypoints.
        **Next:** load_route in a future session to continue editing.

        Args:
            name: Route name stored in the file.
            path: Where to save. Default: ~/.cache/hybrid-route-planner/route.json
        """
        if not name.strip():
            return "Error: Provide a route name."
        try:
            require_state(session, points=2)
        except ValueError as e:
            return f"Error: {e}"

        save_path = Path(path) if path else _default_path()
        save_path.parent.mkdir(parents=True, exist_ok=True)

        session.name = name
        payload = session.orchestrator.export(name)
        with open(save_path, "w") as f:
            json.dump(payload.model_dump(mode="json", by_alias=True), f, indent=2)

        logger.info("Route saved to %s", save_path)
        return f"Route {name!r} saved to {save_path}"

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True))
    def load_route(path: str | None = None) -> str:
        """Load a route saved with save_route, replacing the current one.

        Restores waypoints, routing mode and profile. Computed segments are
        not restored; run calculate_route again in hybrid mode.

        Args:
            path: Path to load from. Default: ~/.cache/hybrid-route-planner/route.json
        """
        load_path = Path(path) if path else _default_path()
        if not load_path.exists():
            return f"Error: Route file not found at {load_path}"

        try:
            with open(load_path) as f:
                payload = RouteExport.model_validate(json.load(f))
        except json.JSONDecodeError as e:
            return f"Error: Invalid route file : {e}"
        except ValidationError as e:
            return f"Error: Route file has an unexpected shape : {e.error_count()} problem(s)"

        orchestrator = session.orchestrator
        orchestrator.clear_auto_segments()
        orchestrator.set_profile(payload.routing_profile)
        orchestrator.set_mode(payload.routing_mode)
        session.route.load(payload.coordinates)
        session.name = payload.name

        next_step = (
            " Next: calculate_route." if payload.routing_mode is RoutingMode.HYBRID else ""
        )
        return (
            f"Route {payload.name!r} loaded from {load_path}: "
            f"{session.route.waypoint_count} waypoint(s), mode {payload.routing_mode.value}, "
            f"profile {payload.routing_profile.value}.{next_step}"
        )

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True))
    def export_gpx(output_path: str, name: str | None = None) -> str:
        """Write the route to a GPX file: waypoints as <rte>, the full routed path as <trk>.

        **Requires:** at least 2 waypoints.

        Args:
            output_path: Destination .gpx file (inside your home directory).
            name: Route name; defaults to the current route name.
        """
        try:
            require_state(session, points=2)
            _validate_output_path(output_path)
        except ValueError as e:
            return f"Error: {e}"

        payload = session.orchestrator.export(name or session.name)
        out = Path(output_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(route_to_gpx(payload))

        logger.info("GPX exported to %s", out)
        return (
            f"GPX exported to {out}: {len(payload.coordinates)} waypoint(s), "
            f"{len(payload.full_route)} track point(s)."
        )

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True))
    def import_gpx(file_path: str) -> str:
        """Replace the route with the points of a GPX route or track.

        Args:
            file_path: Absolute path to a .gpx file.
        """
        try:
            gpx_data = parse_gpx_file(file_path)
        except FileNotFoundError:
            return f"Error: GPX file not found at {file_path}"

        points = gpx_data["points"]
        if len(points) < 1:
            return "Error: GPX file has no route or track points."

        session.orchestrator.clear_auto_segments()
        session.route.load(points)
        session.name = gpx_data["name"]
        return (
            f"GPX loaded: {len(points)} waypoint(s)"
            + (f" from {gpx_data['name']!r}" if gpx_data["name"] else "")
            + "."
        )
