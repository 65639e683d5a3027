"""Turn active preferences into a few POI waypoints the router is asked to pass through."""

import logging
import random
from typing import Callable, List, Optional, Sequence

from . import config
from .models import POI, Coordinate, PoiCategory, Preference, RouteRequest

logger = logging.getLogger(__name__)

PoiFn = Callable[[Coordinate, float, PoiCategory], Sequence[POI]]

# Fixed query order; the cap keeps the earliest categories
PREFERENCE_CATEGORIES = [
    (Preference.SCENERY, PoiCategory.SCENIC),
    (Preference.URBAN, PoiCategory.URBAN),
    (Preference.SAFETY, PoiCategory.PROXIMITY),
    (Preference.QUIET, PoiCategory.QUIET),
    (Preference.FLAT, PoiCategory.WATERSIDE),
    (Preference.FEW_LIGHTS, PoiCategory.PATHS),
]


def poi_search_radius_m(effective_distance_km: float) -> float:
    return min(effective_distance_km * 1000.0 / 2.0, config.POI_MAX_RADIUS_M)


def pick_poi(pois: Sequence[POI], category: PoiCategory, rng: random.Random) -> Optional[POI]:
    """Nearest POI for proximity, a random one otherwise."""
    if not pois:
        return None
    if category == PoiCategory.PROXIMITY:
        return pois[0]
    return pois[rng.randrange(len(pois))]


def dedupe_and_cap(points: Sequence[Coordinate], limit: int = config.MAX_POI_WAYPOINTS) -> List[Coordinate]:
    unique: List[Coordinate] = []
    for p in points:
        if p not in unique:
            unique.append(p)
    return unique[:limit]


def preference_waypoints(
    start: Coordinate,
    request: RouteRequest,
    effective_distance_km: float,
    poi_fn: PoiFn,
    rng: Optional[random.Random] = None,
) -> List[Coordinate]:
    """
    One POI query per active preference around start. Returns at most MAX_POI_WAYPOINTS
    distinct points.
    """
    rng = rng or random.Random()
    radius_m = poi_search_radius_m(effective_distance_km)
    picked: List[Coordinate] = []
    for preference, category in PREFERENCE_CATEGORIES:
        if not request.wants(preference):
            continue
        try:
            pois = poi_fn(start, radius_m, category)
        except Exception as e:
            logger.warning("POI lookup for %s failed: %s", category.value, e)
            continue
        poi = pick_poi(list(pois or []), category, rng)
        if poi is not None:
            picked.append(poi.position)
        logger.debug("%s: %d POIs within %.0f m", category.value, len(pois or []), radius_m)
    return dedupe_and_cap(picked)
