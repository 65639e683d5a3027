import random

import pytest
from fastapi.testclient import TestClient

from runroute import server
from runroute.models import Candidate, Coordinate, Preference, Shape, SynthesisResult, SynthesisStatus

from .conftest import START


def _candidate():
    coords = (START, Coordinate(35.69, 139.77), Coordinate(35.69, 139.78), START)
    return Candidate(
        coordinates=coords,
        distance_km=5.2341,
        elevation_gain_m=23.456,
        turn_count=5,
        waypoints_used=(START, Coordinate(35.69, 139.77), START),
    )


class FakeGenerate:
    """Replaces generate_route in the server module; records what it was asked."""

    def __init__(self, status=SynthesisStatus.CONVERGED, with_candidate=True):
        self.status = status
        self.with_candidate = with_candidate
        self.calls = []

    def __call__(self, start, request, rng=None, **kwargs):
        self.calls.append((start, request, rng))
        return SynthesisResult(
            status=self.status,
            request=request,
            candidate=_candidate() if self.with_candidate else None,
            attempts=3,
        )


@pytest.fixture
def client():
    return TestClient(server.app)


@pytest.fixture
def fake_generate(monkeypatch):
    fake = FakeGenerate()
    monkeypatch.setattr(server, "generate_route", fake)
    return fake


BODY = {"start": {"lat": 35.6812, "lng": 139.7671}, "distance_km": 5}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_route_success(client, fake_generate):
    r = client.post("/route", json={**BODY, "preferences": ["scenery", "flat"]})
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "converged"
    assert data["message"] == "Route generated."
    assert data["distance_km"] == 5.234
    assert data["elevation_gain_m"] == 23.5
    assert data["turn_count"] == 5
    assert data["attempts"] == 3
    assert data["approximate"] is False
    assert data["error"] is None
    assert data["polyline"]
    assert data["waypoints"][1] == {"lat": 35.69, "lng": 139.77}
    assert data["maps_url"].startswith("https://www.google.com/maps/dir/?api=1")

    start, request, rng = fake_generate.calls[0]
    assert start == START
    assert request.target_distance_km == 5
    assert request.shape == Shape.LOOP
    assert request.preferences == {Preference.SCENERY, Preference.FLAT}
    assert rng is None


def test_route_seed_makes_rng(client, fake_generate):
    client.post("/route", json={**BODY, "seed": 7})
    _, _, rng = fake_generate.calls[0]
    assert rng.random() == random.Random(7).random()


def test_route_relax_drops_preferences(client, fake_generate):
    client.post("/route", json={**BODY, "preferences": ["quiet"], "avoid_repetition": False, "relax": True})
    _, request, _ = fake_generate.calls[0]
    assert request.preferences == frozenset()
    assert request.avoid_repetition is True
    assert request.target_distance_km == 5


def test_route_one_way_with_destination(client, fake_generate):
    body = {**BODY, "shape": "one-way", "destination": {"lat": 35.7, "lng": 139.8}}
    assert client.post("/route", json=body).status_code == 200
    _, request, _ = fake_generate.calls[0]
    assert request.is_direct
    assert request.explicit_destination == Coordinate(35.7, 139.8)


def test_route_timed_out_is_approximate(client, monkeypatch):
    monkeypatch.setattr(server, "generate_route", FakeGenerate(status=SynthesisStatus.TIMED_OUT))
    data = client.post("/route", json=BODY).json()
    assert data["status"] == "timed_out"
    assert data["approximate"] is True


def test_route_no_route_is_200_with_error(client, monkeypatch):
    monkeypatch.setattr(server, "generate_route", FakeGenerate(SynthesisStatus.NO_ROUTE, with_candidate=False))
    r = client.post("/route", json=BODY)
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "no_route"
    assert data["error"] == "No route found"
    assert data["polyline"] == ""


def test_route_destination_on_loop_is_400(client, fake_generate):
    body = {**BODY, "destination": {"lat": 35.7, "lng": 139.8}}
    r = client.post("/route", json=body)
    assert r.status_code == 400
    assert "one-way" in r.json()["error"]
    assert fake_generate.calls == []


@pytest.mark.parametrize(
    "body",
    [
        {**BODY, "distance_km": 0},
        {**BODY, "distance_km": -3},
        {**BODY, "shape": "figure-eight"},
        {**BODY, "preferences": ["hills"]},
        {"distance_km": 5},
        {**BODY, "start": {"lat": 95, "lng": 0}},
    ],
)
def test_route_invalid_body_is_422(client, fake_generate, body):
    assert client.post("/route", json=body).status_code == 422
    assert fake_generate.calls == []


def test_gpx_download(client, fake_generate):
    r = client.post("/route/gpx", json=BODY)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/gpx+xml")
    assert "attachment" in r.headers["content-disposition"]
    assert "<trk>" in r.text
    assert "RunRoute - 5.2km" in r.text


def test_gpx_no_route_is_404(client, monkeypatch):
    monkeypatch.setattr(server, "generate_route", FakeGenerate(SynthesisStatus.NO_ROUTE, with_candidate=False))
    r = client.post("/route/gpx", json=BODY)
    assert r.status_code == 404
    assert r.json()["error"].startswith("Could not generate a route")


def test_gpx_bad_request_is_400(client, fake_generate):
    r = client.post("/route/gpx", json={**BODY, "destination": {"lat": 35.7, "lng": 139.8}})
    assert r.status_code == 400
