"""
HTTP clients for the external services: OSRM street router, Open-Elevation, Overpass POIs.
Every client degrades to None / [] on failure; callers treat that as "no data".
"""

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

import requests

from . import config
from .models import POI, Coordinate, PoiCategory, RoutedPath

logger = logging.getLogger(__name__)

# Malformed payloads surface as one of these while walking the JSON
_PAYLOAD_ERRORS = (KeyError, TypeError, IndexError, ValueError, AttributeError)

# ---------------------------------------------------------------------------
# Street router (OSRM)
# ---------------------------------------------------------------------------

NON_TURN_TYPES = {"depart", "arrive", "new name"}


def count_turns(route: Dict[str, Any]) -> int:
    """Count maneuver steps that are actual turns across all legs of an OSRM route."""
    turns = 0
    for leg in route.get("legs") or []:
        for step in leg.get("steps") or []:
            maneuver = step.get("maneuver") or {}
            if maneuver.get("type") in NON_TURN_TYPES:
                continue
            if maneuver.get("modifier") == "straight":
                continue
            turns += 1
    return turns


def _format_waypoints(waypoints: Sequence[Coordinate]) -> str:
    # OSRM wants lng,lat pairs separated by ';'
    return ";".join(f"{p.lng},{p.lat}" for p in waypoints)


def fetch_route(waypoints: Sequence[Coordinate]) -> Optional[RoutedPath]:
    """Route through waypoints on foot. None on failure or a degenerate (<50 m) route."""
    if len(waypoints) < 2:
        return None
    url = f"{config.OSRM_URL}/{_format_waypoints(waypoints)}"
    params = {"overview": "full", "geometries": "geojson", "steps": "true"}
    try:
        r = requests.get(url, params=params, timeout=config.HTTP_TIMEOUT_S)
        r.raise_for_status()
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("OSRM request failed: %s", e)
        return None

    if not isinstance(data, dict) or data.get("code") != "Ok" or not data.get("routes"):
        logger.warning("OSRM returned no routes: %.200s", data)
        return None

    try:
        route = data["routes"][0]
        distance_m = float(route["distance"])
        if distance_m < config.MIN_VALID_DISTANCE_KM * 1000:
            logger.warning("OSRM route is %.1f m long; treating as invalid", distance_m)
            return None
        coords = tuple(Coordinate(float(lat), float(lng)) for lng, lat in route["geometry"]["coordinates"])
        turns = count_turns(route)
    except _PAYLOAD_ERRORS as e:
        logger.warning("Malformed OSRM payload: %s", e)
        return None
    return RoutedPath(coordinates=coords, distance_km=distance_m / 1000.0, turn_count=turns)


# ---------------------------------------------------------------------------
# Elevation (Open-Elevation)
# ---------------------------------------------------------------------------

def sample_path(coords: Sequence[Coordinate], max_samples: int = config.ELEVATION_MAX_SAMPLES) -> List[Coordinate]:
    """Uniform stride sample of coords; the last point is always kept."""
    if not coords:
        return []
    stride = max(1, math.ceil(len(coords) / max_samples))
    sampled = list(coords[::stride])
    if (len(coords) - 1) % stride != 0:
        sampled.append(coords[-1])
    return sampled


def fetch_elevations(coords: Sequence[Coordinate]) -> List[float]:
    """Elevation in meters for a downsampled copy of coords. [] on failure."""
    sampled = sample_path(coords)
    if not sampled:
        return []
    body = {"locations": [{"latitude": c.lat, "longitude": c.lng} for c in sampled]}
    try:
        r = requests.post(config.ELEVATION_URL, json=body, timeout=config.HTTP_TIMEOUT_S)
        r.raise_for_status()
        return [float(res["elevation"]) for res in r.json()["results"]]
    except (requests.RequestException, *_PAYLOAD_ERRORS) as e:
        logger.warning("Elevation lookup failed: %s", e)
        return []


# ---------------------------------------------------------------------------
# Points of interest (Overpass)
# ---------------------------------------------------------------------------

# Overpass QL selectors per category, each suffixed with (around:radius,lat,lng)
POI_SELECTORS = {
    PoiCategory.SCENIC: [
        'way["leisure"="park"]', 'relation["leisure"="park"]',
        'way["natural"="water"]', 'relation["natural"="water"]',
    ],
    PoiCategory.URBAN: [
        'way["landuse"="commercial"]', 'relation["landuse"="commercial"]',
        'node["tourism"="attraction"]', 'way["leisure"="stadium"]',
    ],
    PoiCategory.PROXIMITY: ['node["shop"="convenience"]'],
    PoiCategory.QUIET: [
        'node["amenity"="library"]', 'way["amenity"="place_of_worship"]',
        'relation["leisure"="garden"]', 'way["landuse"="forest"]',
    ],
    PoiCategory.WATERSIDE: [
        'way["waterway"="river"]', 'relation["waterway"="river"]', 'way["natural"="water"]',
    ],
    PoiCategory.PATHS: [
        'way["highway"="cycleway"]', 'way["highway"="path"]', 'way["highway"="living_street"]',
    ],
}


def build_poi_query(center: Coordinate, radius_m: float, category: PoiCategory) -> str:
    around = f"(around:{int(radius_m)},{center.lat},{center.lng})"
    body = "\n".join(f"  {sel}{around};" for sel in POI_SELECTORS[category])
    # Nodes carry lat/lon themselves; ways/relations need "out center"
    return f"[out:json][timeout:25];\n(\n{body}\n);\nout center 10;"


def fetch_pois(center: Coordinate, radius_m: float, category: PoiCategory) -> List[POI]:
    """POIs of category within radius_m of center, in the order Overpass returns them."""
    query = build_poi_query(center, radius_m, category)
    try:
        r = requests.post(config.OVERPASS_URL, data={"data": query}, timeout=config.HTTP_TIMEOUT_S)
        r.raise_for_status()
        elements = r.json().get("elements", [])
    except (requests.RequestException, *_PAYLOAD_ERRORS) as e:
        logger.warning("Overpass %s query failed: %s", category.value, e)
        return []

    pois = []
    for el in elements or []:
        if not isinstance(el, dict):
            continue
        center_el = el.get("center") or {}
        lat = el.get("lat", center_el.get("lat"))
        lng = el.get("lon", center_el.get("lon"))
        if lat is None or lng is None:
            continue
        name = (el.get("tags") or {}).get("name")
        pois.append(POI(position=Coordinate(float(lat), float(lng)), category=category, name=name))
    return pois
