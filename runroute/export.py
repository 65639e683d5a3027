"""
Route export: encoded polyline for the API, GPX track for watches and fitness apps,
and a Google Maps walking-directions link through the route's sharpest corners.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence
from urllib.parse import urlencode

import gpxpy.gpx
import polyline

from . import config
from .geo import detect_turn_points
from .models import Candidate, Coordinate

MAPS_DIR_URL = "https://www.google.com/maps/dir/"


def encode_polyline(coords: Sequence[Coordinate]) -> str:
    return polyline.encode([(c.lat, c.lng) for c in coords])


def decode_polyline(encoded: str) -> list:
    return [Coordinate(lat, lng) for lat, lng in polyline.decode(encoded)]


def route_name(candidate: Candidate) -> str:
    return f"RunRoute - {candidate.distance_km:.1f}km"


def to_gpx(candidate: Candidate, name: Optional[str] = None, when: Optional[datetime] = None) -> str:
    """GPX 1.1 document with the route as a single-segment running track."""
    name = name or route_name(candidate)
    gpx = gpxpy.gpx.GPX()
    gpx.creator = "runroute"
    gpx.name = name
    gpx.time = when or datetime.now(timezone.utc)

    track = gpxpy.gpx.GPXTrack(name=name)
    track.type = "running"
    segment = gpxpy.gpx.GPXTrackSegment()
    for c in candidate.coordinates:
        segment.points.append(gpxpy.gpx.GPXTrackPoint(latitude=c.lat, longitude=c.lng))
    track.segments.append(segment)
    gpx.tracks.append(track)
    return gpx.to_xml(version="1.1")


def maps_url(
    coords: Sequence[Coordinate],
    max_waypoints: int = config.EXPORT_MAX_WAYPOINTS,
    threshold_deg: float = config.EXPORT_TURN_THRESHOLD_DEG,
) -> Optional[str]:
    """
    Walking directions from first to last point via the major corners.
    The maps app re-routes between them, so only the sharpest turns are kept.
    """
    if len(coords) < 2:
        return None
    origin, dest = coords[0], coords[-1]
    params = {
        "api": "1",
        "origin": f"{origin.lat},{origin.lng}",
        "destination": f"{dest.lat},{dest.lng}",
    }
    corners = detect_turn_points(coords, max_waypoints, threshold_deg)
    if corners:
        params["waypoints"] = "|".join(f"{c.lat},{c.lng}" for c in corners)
    params["travelmode"] = "walking"
    return MAPS_DIR_URL + "?" + urlencode(params, safe=",|")
