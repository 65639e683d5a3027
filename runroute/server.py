"""
HTTP API for route synthesis.
Run: uvicorn runroute.server:app  (or python -m runroute.server)
"""
import logging
import random

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response

from .builder import generate_route
from .export import encode_polyline, maps_url, to_gpx
from .models import Coordinate, RouteRequest, SynthesisResult, SynthesisStatus
from .schemas import Point, RouteBody, RouteResponse

logger = logging.getLogger(__name__)

app = FastAPI(title="RunRoute API")


def _request_from_body(body: RouteBody) -> RouteRequest:
    destination = Coordinate(body.destination.lat, body.destination.lng) if body.destination else None
    request = RouteRequest(
        target_distance_km=body.distance_km,
        shape=body.shape,
        preferences=frozenset(body.preferences),
        avoid_repetition=body.avoid_repetition,
        explicit_destination=destination,
    )
    return request.relaxed() if body.relax else request


def _synthesize(body: RouteBody) -> SynthesisResult:
    start = Coordinate(body.start.lat, body.start.lng)
    rng = random.Random(body.seed) if body.seed is not None else None
    return generate_route(start, _request_from_body(body), rng=rng)


def _to_response(result: SynthesisResult) -> RouteResponse:
    c = result.candidate
    if c is None:
        return RouteResponse(
            status=result.status.value,
            message=result.message,
            attempts=result.attempts,
            error="No route found",
        )
    return RouteResponse(
        status=result.status.value,
        message=result.message,
        approximate=result.is_approximate,
        polyline=encode_polyline(c.coordinates),
        distance_km=round(c.distance_km, 3),
        elevation_gain_m=None if c.elevation_gain_m is None else round(c.elevation_gain_m, 1),
        turn_count=c.turn_count,
        attempts=result.attempts,
        used_fallback=result.used_fallback,
        waypoints=[Point(lat=w.lat, lng=w.lng) for w in c.waypoints_used],
        maps_url=maps_url(c.coordinates),
    )


@app.get("/health")
async def health():
    return {"status": "ok"}


# Plain def: blocking search runs in the threadpool
@app.post("/route", response_model=RouteResponse)
def route(body: RouteBody):
    """Synthesize a route. No route found is a 200 with an error field; bad input is a 400."""
    try:
        result = _synthesize(body)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    return _to_response(result)


@app.post("/route/gpx")
def route_gpx(body: RouteBody):
    """Synthesize a route and return it as a GPX download."""
    try:
        result = _synthesize(body)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    if result.status == SynthesisStatus.NO_ROUTE:
        return JSONResponse({"error": result.message}, status_code=404)
    return Response(
        content=to_gpx(result.candidate),
        media_type="application/gpx+xml",
        headers={"Content-Disposition": 'attachment; filename="runroute.gpx"'},
    )


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
