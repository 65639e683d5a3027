"""Run: python -m runroute [lat lng] --distance 5 [--shape one-way] [--prefer scenery ...]
   With no coordinates, starts from the default location. Prints the route summary;
   --gpx writes the track to a file.
"""
import argparse
import logging
import random
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .builder import generate_route
from .export import maps_url, to_gpx
from .models import Coordinate, Preference, RouteRequest, Shape


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="runroute", description="Generate a running route.")
    p.add_argument("lat", nargs="?", type=float, default=None)
    p.add_argument("lng", nargs="?", type=float, default=None)
    p.add_argument("--distance", type=float, default=5.0, help="target distance in km")
    p.add_argument("--shape", choices=[s.value for s in Shape], default=Shape.LOOP.value)
    p.add_argument("--prefer", action="append", default=[], choices=[x.value for x in Preference])
    p.add_argument("--allow-repetition", action="store_true", help="allow out-and-back / repeated streets")
    p.add_argument("--to", nargs=2, type=float, metavar=("LAT", "LNG"), help="one-way destination")
    p.add_argument("--relax", action="store_true", help="same distance, no preferences")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--gpx", type=Path, default=None, help="write the route as GPX here")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.lat is not None and args.lng is not None:
        start = Coordinate(args.lat, args.lng)
    else:
        start = Coordinate(config.DEFAULT_LAT, config.DEFAULT_LNG)
        print(f"No location given; using default {start.lat:.4f}, {start.lng:.4f}")

    try:
        request = RouteRequest(
            target_distance_km=args.distance,
            shape=Shape(args.shape),
            preferences=frozenset(Preference(x) for x in args.prefer),
            avoid_repetition=not args.allow_repetition,
            explicit_destination=Coordinate(*args.to) if args.to else None,
        )
    except ValueError as e:
        print("Error:", e, file=sys.stderr)
        return 2
    if args.relax:
        request = request.relaxed()

    rng = random.Random(args.seed) if args.seed is not None else None
    result = generate_route(start, request, rng=rng)
    print(result.message)
    if not result.ok:
        return 1

    c = result.candidate
    gain = "n/a" if c.elevation_gain_m is None else f"{c.elevation_gain_m:.0f} m"
    print(f"Route: {c.distance_km:.2f} km, elevation gain {gain}, turns {c.turn_count}, attempts {result.attempts}")
    if result.is_approximate:
        print(f"Note: distance differs from the {request.target_distance_km} km target.")
    print("Google Maps:", maps_url(c.coordinates))
    if args.gpx is not None:
        args.gpx.write_text(to_gpx(c), encoding="utf-8")
        print("GPX saved:", args.gpx.resolve())
    return 0


if __name__ == "__main__":
    sys.exit(main())
