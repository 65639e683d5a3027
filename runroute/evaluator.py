"""
Candidate scoring: distance tolerance, elevation gain and flatness, the distance
correction factor, and the best-so-far selection policy.
"""

from typing import Iterable, Optional, Sequence

import numpy as np

from . import config
from .models import Candidate, Preference


def tolerance_km(target_km: float) -> float:
    """Acceptable distance error: 10% of the target, clamped to [0.5, 1.0] km."""
    return min(config.TOLERANCE_MAX_KM, max(config.TOLERANCE_MIN_KM, target_km * config.TOLERANCE_FRACTION))


def elevation_gain(elevations: Sequence[float]) -> Optional[float]:
    """Sum of positive consecutive deltas. None when there is no elevation data."""
    if len(elevations) == 0:
        return None
    deltas = np.diff(np.asarray(elevations, dtype=float))
    return float(np.clip(deltas, 0, None).sum())


def is_flat(distance_km: float, gain_m: Optional[float]) -> bool:
    """Less than 10 m of climb per km. Missing elevation data never rejects a route."""
    if gain_m is None or distance_km <= 0:
        return True
    return gain_m / distance_km < config.FLAT_GAIN_PER_KM


def scale_factor(target_km: float, best: Optional[Candidate]) -> float:
    """Damped proportional correction for the router's distance bias."""
    if best is None or best.distance_km <= 0:
        return 1.0
    return 1.0 + (target_km / best.distance_km - 1.0) * config.SCALE_DAMPING


def is_valid(candidate: Candidate) -> bool:
    return candidate.distance_km >= config.MIN_VALID_DISTANCE_KM


def _fewer_turns_wins(best: Candidate, candidate: Candidate, target_km: float) -> bool:
    tol = tolerance_km(target_km)
    error = candidate.error_km(target_km)
    best_error = best.error_km(target_km)

    if error < best_error and candidate.turn_count <= best.turn_count:
        return True
    if error > tol:
        return False
    if best_error > tol:
        # first one to land inside tolerance wins regardless of turns
        return True
    return candidate.turn_count < best.turn_count


def choose_best(
    best: Optional[Candidate],
    candidate: Candidate,
    target_km: float,
    preferences: Iterable[Preference],
    final_attempt: bool = False,
) -> Optional[Candidate]:
    """
    Reduce (current best, new candidate) to the new best.

    - Flat: a hilly candidate only becomes best when nothing else exists, unless it is
      the final attempt, where it is judged like any other candidate.
    - MinimizeTurns: a candidate wins with lower error and no more turns, or by entering
      tolerance while the best is outside it, or with fewer turns while both are inside.
    - Otherwise the smaller absolute distance error wins.
    """
    if not is_valid(candidate):
        return best
    if best is None:
        return candidate
    prefs = set(preferences)

    if Preference.FLAT in prefs and not is_flat(candidate.distance_km, candidate.elevation_gain_m):
        if not final_attempt:
            return best
        # hilly on the last try: distance comparison only, no tolerance bonus
        closer = candidate.error_km(target_km) < best.error_km(target_km)
        if Preference.MINIMIZE_TURNS in prefs:
            closer = closer and candidate.turn_count <= best.turn_count
        return candidate if closer else best

    if Preference.MINIMIZE_TURNS in prefs:
        return candidate if _fewer_turns_wins(best, candidate, target_km) else best

    return candidate if candidate.error_km(target_km) < best.error_km(target_km) else best


def should_stop(candidate: Candidate, target_km: float, preferences: Iterable[Preference]) -> bool:
    """Early exit: within tolerance, flat when flatness is wanted, and not hunting fewer turns."""
    prefs = set(preferences)
    if candidate.error_km(target_km) > tolerance_km(target_km):
        return False
    if Preference.MINIMIZE_TURNS in prefs:
        return False
    if Preference.FLAT in prefs and not is_flat(candidate.distance_km, candidate.elevation_gain_m):
        return False
    return True
