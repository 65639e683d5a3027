"""Pydantic models for request/response validation"""
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import Preference, Shape


class Point(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class RouteBody(BaseModel):
    start: Point
    distance_km: float = Field(..., gt=0, description="Target distance in km")
    shape: Shape = Shape.LOOP
    preferences: List[Preference] = Field(default_factory=list)
    avoid_repetition: bool = True
    destination: Optional[Point] = Field(default=None, description="One-way only: route straight here")
    relax: bool = Field(default=False, description="Retry with the same distance and no preferences")
    seed: Optional[int] = Field(default=None, description="Fix the random search for reproducible results")


class RouteResponse(BaseModel):
    status: str
    message: str
    approximate: bool = False
    polyline: str = ""
    distance_km: float = 0.0
    elevation_gain_m: Optional[float] = None
    turn_count: int = 0
    attempts: int = 0
    used_fallback: bool = False
    waypoints: List[Point] = Field(default_factory=list)
    maps_url: Optional[str] = None
    error: Optional[str] = None
