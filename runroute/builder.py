"""
Route synthesis controller.
Turns a RouteRequest into waypoint lists for the street router, scores what comes back,
corrects for the router's distance bias between attempts, and falls back to fixed
compass bearings when the random search finds nothing.
Uses: the providers module by default; every collaborator can be injected.
"""

import logging
import random
import time
from typing import Callable, List, Optional, Sequence

from . import config, geo, providers
from .evaluator import choose_best, elevation_gain, scale_factor, should_stop, tolerance_km
from .models import (
    Candidate,
    Coordinate,
    RouteRequest,
    RoutedPath,
    SearchState,
    Shape,
    SynthesisResult,
    SynthesisStatus,
)
from .waypoints import PoiFn, preference_waypoints

logger = logging.getLogger(__name__)

RouteFn = Callable[[Sequence[Coordinate]], Optional[RoutedPath]]
ElevationFn = Callable[[Sequence[Coordinate]], Sequence[float]]
AttemptHook = Callable[[SearchState, Optional[Candidate]], None]


# ---------------------------------------------------------------------------
# STEP 1: Provider calls (failures forfeit the attempt, never raise)
# ---------------------------------------------------------------------------

def _call_router(route_fn: RouteFn, waypoints: Sequence[Coordinate], state: Optional[SearchState] = None) -> Optional[RoutedPath]:
    if state is not None:
        state.provider_calls += 1
    try:
        return route_fn(list(waypoints))
    except Exception as e:
        logger.warning("Router call failed: %s", e)
        return None


def _gain_for(elevation_fn: ElevationFn, path: RoutedPath) -> Optional[float]:
    try:
        elevations = list(elevation_fn(path.coordinates) or [])
    except Exception as e:
        logger.warning("Elevation call failed: %s", e)
        elevations = []
    return elevation_gain(elevations)


def _to_candidate(path: RoutedPath, gain: Optional[float], waypoints: Sequence[Coordinate]) -> Candidate:
    return Candidate(
        coordinates=tuple(path.coordinates),
        distance_km=path.distance_km,
        elevation_gain_m=gain,
        turn_count=path.turn_count or 0,
        waypoints_used=tuple(waypoints),
    )


def _route_candidate(
    route_fn: RouteFn,
    elevation_fn: ElevationFn,
    waypoints: Sequence[Coordinate],
    state: Optional[SearchState] = None,
    min_distance_km: float = config.MIN_VALID_DISTANCE_KM,
    strictly_longer: bool = False,
) -> Optional[Candidate]:
    """
    Route, then attach elevation gain. None if the router fails or the route is degenerate:
    shorter than min_distance_km, or exactly that long when strictly_longer is set.
    """
    path = _call_router(route_fn, waypoints, state)
    if path is None:
        return None
    too_short = path.distance_km <= min_distance_km if strictly_longer else path.distance_km < min_distance_km
    if too_short:
        logger.info("Discarding %.3f km route (minimum %.2f km)", path.distance_km, min_distance_km)
        return None
    return _to_candidate(path, _gain_for(elevation_fn, path), waypoints)


# ---------------------------------------------------------------------------
# STEP 2: Waypoint lists
# ---------------------------------------------------------------------------

def loop_vertex_count(request: RouteRequest, attempt: int) -> int:
    """Triangle when repetition is avoided, out-and-back otherwise and late in the search."""
    if attempt > config.SIMPLIFY_AFTER_ATTEMPT:
        return 1
    return config.LOOP_VERTICES if request.avoid_repetition else 1


def build_waypoints(
    start: Coordinate,
    request: RouteRequest,
    effective_distance_km: float,
    attempt: int,
    pois: Sequence[Coordinate],
    rng: random.Random,
) -> List[Coordinate]:
    if request.shape == Shape.LOOP:
        if pois and not request.avoid_repetition:
            return [start, *pois, start]
        count = loop_vertex_count(request, attempt)
        if attempt > config.SIMPLIFY_AFTER_ATTEMPT:
            logger.info("Attempt %d: simplifying loop to out-and-back", attempt)
        return [start, *geo.generate_loop_waypoints(start, effective_distance_km, count, rng), start]

    dest = geo.destination(start, effective_distance_km, geo.random_bearing(rng))
    return [start, *pois, dest]


# ---------------------------------------------------------------------------
# STEP 3: Direct route (one-way to a chosen destination)
# ---------------------------------------------------------------------------

def _direct_route(start: Coordinate, request: RouteRequest, route_fn: RouteFn, elevation_fn: ElevationFn) -> SynthesisResult:
    logger.info("Direct route to (%.5f, %.5f)", request.explicit_destination.lat, request.explicit_destination.lng)
    waypoints = [start, request.explicit_destination]
    candidate = _route_candidate(route_fn, elevation_fn, waypoints)
    if candidate is None:
        return SynthesisResult(SynthesisStatus.NO_ROUTE, request, attempts=1)
    return SynthesisResult(SynthesisStatus.CONVERGED, request, candidate=candidate, attempts=1)


# ---------------------------------------------------------------------------
# STEP 4: Cardinal-bearing fallback for loops
# ---------------------------------------------------------------------------

def _fallback_loop(
    start: Coordinate,
    request: RouteRequest,
    route_fn: RouteFn,
    elevation_fn: ElevationFn,
    state: SearchState,
    sleep: Callable[[float], None],
) -> Optional[Candidate]:
    logger.info("Random search found nothing; trying cardinal bearings")
    half = request.target_distance_km / 2.0
    for bearing in config.FALLBACK_BEARINGS:
        turnaround = geo.destination(start, half, bearing)
        waypoints = [start, turnaround, start]
        candidate = _route_candidate(
            route_fn, elevation_fn, waypoints, state,
            min_distance_km=config.FALLBACK_MIN_DISTANCE_KM, strictly_longer=True,
        )
        if candidate is not None:
            logger.info("Fallback succeeded at bearing %.0f: %.2f km", bearing, candidate.distance_km)
            return candidate
        sleep(config.FALLBACK_PAUSE_S)
    return None


# ---------------------------------------------------------------------------
# STEP 5: Main entry
# ---------------------------------------------------------------------------

def generate_route(
    start: Coordinate,
    request: RouteRequest,
    route_fn: Optional[RouteFn] = None,
    elevation_fn: Optional[ElevationFn] = None,
    poi_fn: Optional[PoiFn] = None,
    rng: Optional[random.Random] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    on_attempt: Optional[AttemptHook] = None,
) -> SynthesisResult:
    """
    Search for a route matching request from start.

    One-way requests with an explicit destination are routed once, as is. Everything
    else runs up to MAX_ATTEMPTS closed-loop attempts, each rescaling the requested
    distance by the error of the best route so far, stopping early once a route lands
    within tolerance (unless Flat or MinimizeTurns keep the search going). The time
    budget is checked before each attempt only; an in-flight call is never cut short.
    clock returns seconds; on_attempt(state, candidate) sees the state after each attempt.
    """
    route_fn = route_fn or providers.fetch_route
    elevation_fn = elevation_fn or providers.fetch_elevations
    poi_fn = poi_fn or providers.fetch_pois
    rng = rng or random.Random()

    if request.is_direct:
        return _direct_route(start, request, route_fn, elevation_fn)

    target = request.target_distance_km
    prefs = request.preferences
    started = clock()
    state = SearchState(start_time=started, deadline=started + config.TIMEOUT_MS / 1000.0)
    logger.info(
        "Synthesizing %s route: %.2f km (tolerance %.2f km), preferences=%s",
        request.shape.value, target, tolerance_km(target), sorted(p.value for p in prefs),
    )

    for attempt in range(1, config.MAX_ATTEMPTS + 1):
        if clock() > state.deadline:
            logger.info("Time budget exceeded before attempt %d; keeping best so far", attempt)
            state.timed_out = True
            break

        state.attempt_index = attempt
        state.scale_factor = scale_factor(target, state.best)
        effective = target * state.scale_factor
        logger.info("Attempt %d/%d: effective %.2f km (scale %.3f)", attempt, config.MAX_ATTEMPTS, effective, state.scale_factor)

        pois = preference_waypoints(start, request, effective, poi_fn, rng)
        waypoints = build_waypoints(start, request, effective, attempt, pois, rng)
        candidate = _route_candidate(route_fn, elevation_fn, waypoints, state)

        stop = False
        if candidate is not None:
            logger.info(
                "Attempt %d: %.2f km (error %.2f km), gain %s m, %d turns",
                attempt, candidate.distance_km, candidate.error_km(target),
                "n/a" if candidate.elevation_gain_m is None else f"{candidate.elevation_gain_m:.0f}",
                candidate.turn_count,
            )
            state.best = choose_best(state.best, candidate, target, prefs, final_attempt=attempt == config.MAX_ATTEMPTS)
            stop = should_stop(candidate, target, prefs)
        else:
            logger.info("Attempt %d: no route", attempt)

        if on_attempt is not None:
            on_attempt(state, candidate)
        if stop:
            logger.info("Route within tolerance found at attempt %d", attempt)
            break
        sleep(config.ATTEMPT_PAUSE_S)

    if state.best is None and request.shape == Shape.LOOP and not state.timed_out:
        fallback = _fallback_loop(start, request, route_fn, elevation_fn, state, sleep)
        if fallback is not None:
            state.best = fallback
            state.used_fallback = True

    if state.best is None:
        status = SynthesisStatus.NO_ROUTE
    elif state.timed_out:
        status = SynthesisStatus.TIMED_OUT
    else:
        status = SynthesisStatus.CONVERGED
    logger.info(
        "Search %s after %d attempts and %d router calls (best error %.2f km)",
        status.value, state.attempt_index, state.provider_calls, state.best_error(target),
    )
    return SynthesisResult(
        status=status,
        request=request,
        candidate=state.best,
        attempts=state.attempt_index,
        used_fallback=state.used_fallback,
    )
