import pytest

from runroute.models import Coordinate, RoutedPath

START = Coordinate(35.6812, 139.7671)


class FakeClock:
    """Seconds clock that only moves when the code under test sleeps (or a test says so)."""

    def __init__(self, now: float = 1000.0):
        self.now = now
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedRouter:
    """Returns queued paths in order (None = provider failure) and records every call."""

    def __init__(self, results=None, default=None):
        self.results = list(results or [])
        self.default = default
        self.calls = []

    def __call__(self, waypoints):
        self.calls.append(list(waypoints))
        if self.results:
            result = self.results.pop(0)
        else:
            result = self.default
        if isinstance(result, Exception):
            raise result
        return result


def make_path(distance_km: float, turns: int = 0, points: int = 5) -> RoutedPath:
    coords = tuple(Coordinate(START.lat + 0.001 * i, START.lng) for i in range(points))
    return RoutedPath(coordinates=coords, distance_km=distance_km, turn_count=turns)


@pytest.fixture
def clock():
    return FakeClock()

