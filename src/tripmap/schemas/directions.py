"""Directions/marker payload schemas returned by the routing backend."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TextValue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: float = 0.0
    text: str = ""


class TextOnly(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str = ""


class DirectionsStep(BaseModel):
    model_config = ConfigDict(extra="ignore")

    html_instructions: str = ""
    distance: TextOnly = Field(default_factory=TextOnly)
    duration: TextOnly = Field(default_factory=TextOnly)


class DirectionsLeg(BaseModel):
    model_config = ConfigDict(extra="ignore")

    distance: TextValue
    duration: TextValue
    steps: List[DirectionsStep] = Field(default_factory=list)


class OverviewPolyline(BaseModel):
    points: str


class DirectionsRoute(BaseModel):
    model_config = ConfigDict(extra="ignore")

    overview_polyline: OverviewPolyline
    waypoint_order: Optional[List[int]] = None
    legs: List[DirectionsLeg]


class DirectionsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    routes: List[DirectionsRoute] = Field(..., min_length=1)


class MarkerRecord(BaseModel):
    """One row of ``GET /get_markers``."""

    model_config = ConfigDict(extra="ignore")

    address: str
    lat: float
    lng: float


class MapboxTokenResponse(BaseModel):
    mapbox_token: Optional[str] = None
