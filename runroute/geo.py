"""
Geometry kernel: great-circle destination/bearing, turn detection on a dense path,
and polygon waypoints for loop shapes. Spherical Earth, radius 6371 km.
"""

import math
import random
from typing import List, Optional, Sequence

from geopy.distance import great_circle

from . import config
from .models import Coordinate


def destination(start: Coordinate, distance_km: float, bearing_deg: float) -> Coordinate:
    """Point reached from start after distance_km along the initial bearing."""
    d = great_circle(kilometers=distance_km, radius=config.EARTH_RADIUS_KM)
    dest = d.destination(point=(start.lat, start.lng), bearing=bearing_deg)
    return Coordinate(dest.latitude, dest.longitude)


def distance_km(a: Coordinate, b: Coordinate) -> float:
    return great_circle((a.lat, a.lng), (b.lat, b.lng), radius=config.EARTH_RADIUS_KM).km


def bearing(origin: Coordinate, target: Coordinate) -> float:
    """Initial great-circle bearing in degrees, [0, 360)."""
    lat1, lat2 = math.radians(origin.lat), math.radians(target.lat)
    dlng = math.radians(target.lng - origin.lng)
    y = math.sin(dlng) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlng)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def random_bearing(rng: Optional[random.Random] = None) -> float:
    rng = rng or random
    return rng.uniform(0, 360)


def turn_angle(prev: Coordinate, curr: Coordinate, nxt: Coordinate) -> float:
    """Heading change at curr between segments prev->curr and curr->nxt, in [0, 180]."""
    diff = abs(bearing(prev, curr) - bearing(curr, nxt))
    if diff > 180:
        diff = 360 - diff
    return diff


def detect_turn_points(
    path: Sequence[Coordinate],
    max_points: int = 10,
    threshold_deg: float = 30.0,
) -> List[Coordinate]:
    """Most severe turns on path (at most max_points), returned in path order."""
    if len(path) <= 2 or max_points <= 0:
        return []
    turns = []
    for i in range(1, len(path) - 1):
        angle = turn_angle(path[i - 1], path[i], path[i + 1])
        if angle > threshold_deg:
            turns.append((i, angle))
    turns.sort(key=lambda t: t[1], reverse=True)
    selected = sorted(turns[:max_points], key=lambda t: t[0])
    return [path[i] for i, _ in selected]


def generate_loop_waypoints(
    start: Coordinate,
    total_distance_km: float,
    point_count: int = config.LOOP_VERTICES,
    rng: Optional[random.Random] = None,
) -> List[Coordinate]:
    """
    Waypoints that, together with start, approximate a loop of total_distance_km.

    point_count == 1 is an out-and-back: one turnaround at half the distance.
    Otherwise start sits on a circle of circumference total_distance_km whose center lies
    along a random bearing; point_count - 1 more vertices are spread evenly around it,
    counting from the start so start plus the result form a regular polygon.
    """
    if point_count < 1:
        raise ValueError(f"point_count must be >= 1, got {point_count}")
    center_bearing = random_bearing(rng)

    if point_count == 1:
        return [destination(start, total_distance_km / 2.0, center_bearing)]

    radius = total_distance_km / (2 * math.pi)
    center = destination(start, radius, center_bearing)
    angle_to_start = (center_bearing + 180.0) % 360.0
    step = 360.0 / point_count
    return [
        destination(center, radius, (angle_to_start + step * i) % 360.0)
        for i in range(1, point_count)
    ]
