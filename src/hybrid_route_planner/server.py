"""MCP server for hybrid-route-planner.

Registers all tools and runs via stdio transport.
"""

import logging
import sys

from mcp.server.fastmcp import FastMCP

from .config import get_server_settings
from .state import session
from .tools.waypoints import register_waypoint_tools
from .tools.routing import register_routing_tools
from .tools.session import register_session_tools
from .tools.status import register_status_tools

mcp = FastMCP(
    "hybrid-route-planner",
    instructions=(
        "Build multi-point routes from user-placed waypoints and fill the gaps "
        "between them with OSRM, trail data or OpenRouteService"
    ),
)

# Register all tool groups
register_waypoint_tools(mcp)
register_routing_tools(mcp)
register_session_tools(mcp)
register_status_tools(mcp)


def main():
    settings = get_server_settings()
    # stdout carries the stdio transport
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    session.reset(settings.routing_settings())
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
