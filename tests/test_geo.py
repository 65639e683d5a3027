import math
import random

import pytest

from runroute import geo
from runroute.models import Coordinate

from .conftest import START


def test_destination_round_trips_with_distance_and_bearing():
    dest = geo.destination(START, 2.5, 45.0)
    assert geo.distance_km(START, dest) == pytest.approx(2.5, rel=1e-6)
    assert geo.bearing(START, dest) == pytest.approx(45.0, abs=0.05)


def test_destination_due_north_keeps_longitude():
    dest = geo.destination(Coordinate(0.0, 10.0), 111.19492664455873, 0.0)
    assert dest.lat == pytest.approx(1.0, abs=1e-6)
    assert dest.lng == pytest.approx(10.0, abs=1e-9)


@pytest.mark.parametrize(
    "target, expected",
    [
        (Coordinate(1.0, 0.0), 0.0),
        (Coordinate(0.0, 1.0), 90.0),
        (Coordinate(-1.0, 0.0), 180.0),
        (Coordinate(0.0, -1.0), 270.0),
    ],
)
def test_bearing_cardinals(target, expected):
    assert geo.bearing(Coordinate(0.0, 0.0), target) == pytest.approx(expected, abs=1e-9)


def test_bearing_is_in_range():
    b = geo.bearing(Coordinate(0.0, 0.0), Coordinate(-0.5, -0.0001))
    assert 0.0 <= b < 360.0


def test_turn_angle_is_folded_to_180():
    prev = Coordinate(0.0, 0.0)
    curr = Coordinate(0.0, 0.01)
    # east then north: a right-angle left turn
    assert geo.turn_angle(prev, curr, Coordinate(0.01, 0.01)) == pytest.approx(90.0, abs=0.1)
    # east then back west: full reversal
    assert geo.turn_angle(prev, curr, Coordinate(0.0, 0.0)) == pytest.approx(180.0, abs=0.1)


def _zigzag():
    # east, 90 deg corner at 2, 20 deg bend at 3, hairpin at 5
    return [
        Coordinate(0.0, 0.0),
        Coordinate(0.0, 0.01),
        Coordinate(0.0, 0.02),
        Coordinate(0.01, 0.02),
        Coordinate(0.02, 0.02 + 0.01 * math.tan(math.radians(20))),
        Coordinate(0.03, 0.02 + 0.02 * math.tan(math.radians(20))),
        Coordinate(0.0, 0.02),
    ]


def test_detect_turn_points_filters_by_threshold_and_keeps_path_order():
    path = _zigzag()
    turns = geo.detect_turn_points(path, max_points=10, threshold_deg=30)
    assert turns == [path[2], path[5]]


def test_detect_turn_points_keeps_most_severe_but_returns_positional_order():
    path = _zigzag()
    # hairpin (index 5) outranks the corner (index 2)
    assert geo.detect_turn_points(path, max_points=1, threshold_deg=30) == [path[5]]
    # low threshold admits the bend too; the top two are still reported in path order
    assert geo.detect_turn_points(path, max_points=2, threshold_deg=10) == [path[2], path[5]]


def test_detect_turn_points_short_paths():
    assert geo.detect_turn_points([START], 5, 30) == []
    assert geo.detect_turn_points([START, Coordinate(0, 0)], 5, 30) == []


def test_detect_turn_points_never_exceeds_max():
    rnd = random.Random(1)
    path = [Coordinate(rnd.uniform(0, 0.1), rnd.uniform(0, 0.1)) for _ in range(60)]
    for max_points in (0, 1, 3, 9):
        result = geo.detect_turn_points(path, max_points, 10)
        assert len(result) <= max_points
        indices = [path.index(p) for p in result]
        assert indices == sorted(indices)


def test_out_and_back_is_one_point_at_half_distance():
    points = geo.generate_loop_waypoints(START, 6.0, 1, random.Random(3))
    assert len(points) == 1
    assert geo.distance_km(START, points[0]) == pytest.approx(3.0, rel=1e-6)


@pytest.mark.parametrize("count", [3, 4, 6])
def test_loop_points_lie_on_circle_around_center(count):
    total = 5.0
    radius = total / (2 * math.pi)
    points = geo.generate_loop_waypoints(START, total, count, random.Random(11))

    # same seed reproduces the center bearing the generator drew
    center_bearing = random.Random(11).uniform(0, 360)
    center = geo.destination(START, radius, center_bearing)

    assert len(points) == count - 1
    for p in points:
        assert geo.distance_km(center, p) == pytest.approx(radius, rel=1e-6)

    # evenly spaced in bearing around the center
    bearings = [geo.bearing(center, p) for p in points]
    step = 360.0 / count
    for a, b in zip(bearings, bearings[1:]):
        assert (b - a) % 360.0 == pytest.approx(step, abs=0.01)


def test_loop_points_are_reproducible_with_seed():
    a = geo.generate_loop_waypoints(START, 5.0, 3, random.Random(5))
    b = geo.generate_loop_waypoints(START, 5.0, 3, random.Random(5))
    assert a == b


def test_loop_rejects_zero_points():
    with pytest.raises(ValueError):
        geo.generate_loop_waypoints(START, 5.0, 0)
