"""GPX import of waypoints and export of the full route."""

import gpxpy
import gpxpy.gpx

from hybrid_route_planner.models import Coordinate, RouteExport


def parse_gpx_file(filepath: str) -> dict:
    """Read route points from a GPX file.

    Uses <rte> points when present, else the first track's points.
    """
    with open(filepath, "r") as f:
        gpx = gpxpy.parse(f)

    points: list[Coordinate] = []
    for route in gpx.routes:
        points.extend(Coordinate(lat=p.latitude, lon=p.longitude) for p in route.points)
        if points:
            break

    if not points:
        for track in gpx.tracks:
            for segment in track.segments:
                points.extend(Coordinate(lat=p.latitude, lon=p.longitude) for p in segment.points)
            if points:
                break

    name = gpx.name
    if not name and gpx.tracks:
        name = gpx.tracks[0].name
    if not name and gpx.routes:
        name = gpx.routes[0].name

    return {
        "name": name or "",
        "points": points,
    }


def route_to_gpx(route: RouteExport) -> str:
    """Serialize waypoints as <rte> and the spliced full route as <trk>."""
    gpx = gpxpy.gpx.GPX()
    gpx.name = route.name or "Route"
    gpx.creator = "hybrid-route-planner"

    rte = gpxpy.gpx.GPXRoute(name=route.name or "Route")
    for i, c in enumerate(route.coordinates):
        rte.points.append(gpxpy.gpx.GPXRoutePoint(c.lat, c.lon, name=f"WP{i + 1}"))
    gpx.routes.append(rte)

    trk = gpxpy.gpx.GPXTrack(name=route.name or "Route")
    trk.type = route.routing_profile.value
    seg = gpxpy.gpx.GPXTrackSegment()
    for c in route.full_route:
        seg.points.append(gpxpy.gpx.GPXTrackPoint(c.lat, c.lon))
    trk.segments.append(seg)
    gpx.tracks.append(trk)

    return gpx.to_xml()
