"""Status tool: get_status."""

import json
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..state import session


def register_status_tools(mcp: FastMCP):

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))
    def get_status() -> str:
        """Return a summary of the current route.

        Shows waypoints, distance and estimated time, routing mode, profile and
        providers, computed segments, distance markers along the full route,
        and cache usage.
        """
        return json.dumps(session.summary(), indent=2)
