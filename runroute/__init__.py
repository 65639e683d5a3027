"""RunRoute: runner route synthesis on top of a public street router."""

from .builder import generate_route
from .models import (
    Candidate,
    Coordinate,
    Preference,
    RouteRequest,
    Shape,
    SynthesisResult,
    SynthesisStatus,
)

__all__ = [
    "generate_route",
    "Candidate",
    "Coordinate",
    "Preference",
    "RouteRequest",
    "Shape",
    "SynthesisResult",
    "SynthesisStatus",
]
