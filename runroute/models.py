"""Value types shared by the route synthesis engine, its providers and the API."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from . import config


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 point. Equality is by exact lat/lng value."""
    lat: float
    lng: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


class Shape(str, Enum):
    LOOP = "loop"
    ONE_WAY = "one-way"


class Preference(str, Enum):
    SCENERY = "scenery"
    URBAN = "urban"
    SAFETY = "safety"
    QUIET = "quiet"
    FEW_LIGHTS = "few_lights"
    FLAT = "flat"
    MINIMIZE_TURNS = "minimize_turns"


class PoiCategory(str, Enum):
    SCENIC = "scenic"
    URBAN = "urban"
    PROXIMITY = "proximity"  # lit / staffed spots, nearest wins
    QUIET = "quiet"
    WATERSIDE = "waterside"
    PATHS = "paths"


@dataclass(frozen=True)
class POI:
    position: Coordinate
    category: PoiCategory
    name: Optional[str] = None


@dataclass(frozen=True)
class RouteRequest:
    target_distance_km: float
    shape: Shape = Shape.LOOP
    preferences: FrozenSet[Preference] = frozenset()
    avoid_repetition: bool = True
    explicit_destination: Optional[Coordinate] = None

    def __post_init__(self):
        if not math.isfinite(self.target_distance_km) or self.target_distance_km <= 0:
            raise ValueError(f"target_distance_km must be > 0, got {self.target_distance_km!r}")
        if self.explicit_destination is not None and self.shape != Shape.ONE_WAY:
            raise ValueError("explicit_destination is only valid for one-way routes")
        # Accept any iterable of preferences (list from the API, set from code)
        object.__setattr__(self, "preferences", frozenset(Preference(p) for p in self.preferences))

    def wants(self, preference: Preference) -> bool:
        return preference in self.preferences

    @property
    def is_direct(self) -> bool:
        return self.shape == Shape.ONE_WAY and self.explicit_destination is not None

    def relaxed(self) -> "RouteRequest":
        """Same distance and shape, preferences cleared, repetition avoided."""
        return RouteRequest(
            target_distance_km=self.target_distance_km,
            shape=self.shape,
            preferences=frozenset(),
            avoid_repetition=True,
            explicit_destination=self.explicit_destination,
        )


@dataclass(frozen=True)
class RoutedPath:
    """What the street router hands back for one waypoint list."""
    coordinates: Tuple[Coordinate, ...]
    distance_km: float
    turn_count: int = 0


@dataclass(frozen=True)
class Candidate:
    coordinates: Tuple[Coordinate, ...]
    distance_km: float
    elevation_gain_m: Optional[float]
    turn_count: int
    waypoints_used: Tuple[Coordinate, ...]

    def error_km(self, target_km: float) -> float:
        return abs(self.distance_km - target_km)


@dataclass
class SearchState:
    """Mutable loop state owned by one generate_route() call."""
    start_time: float
    deadline: float
    attempt_index: int = 0
    best: Optional[Candidate] = None
    scale_factor: float = 1.0
    timed_out: bool = False
    used_fallback: bool = False
    provider_calls: int = 0

    def best_error(self, target_km: float) -> float:
        if self.best is None:
            return float("inf")
        return self.best.error_km(target_km)


class SynthesisStatus(str, Enum):
    CONVERGED = "converged"
    TIMED_OUT = "timed_out"
    NO_ROUTE = "no_route"


_MESSAGES = {
    SynthesisStatus.CONVERGED: "Route generated.",
    SynthesisStatus.TIMED_OUT: "Search time exceeded; showing the best route found so far.",
    SynthesisStatus.NO_ROUTE: "Could not generate a route. Relax the conditions and try again.",
}


@dataclass(frozen=True)
class SynthesisResult:
    status: SynthesisStatus
    request: RouteRequest
    candidate: Optional[Candidate] = None
    attempts: int = 0
    used_fallback: bool = False

    @property
    def ok(self) -> bool:
        return self.candidate is not None

    @property
    def message(self) -> str:
        return _MESSAGES[self.status]

    @property
    def is_approximate(self) -> bool:
        if self.candidate is None:
            return False
        if self.status == SynthesisStatus.TIMED_OUT:
            return True
        target = self.request.target_distance_km
        limit = max(config.APPROXIMATE_MIN_KM, target * config.APPROXIMATE_FRACTION)
        return self.candidate.error_km(target) > limit

