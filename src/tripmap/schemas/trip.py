"""Trip planner request/response schemas."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


class StopModel(BaseModel):
    order: int
    address: str
    lat: float
    lng: float


class StepModel(BaseModel):
    instruction: str
    distance: str
    duration: str


class LegModel(BaseModel):
    start: str
    end: str
    steps: List[StepModel]


class MarkerModel(BaseModel):
    position: Tuple[float, float]
    role: str
    color: str
    popup: str


class TripSummaryModel(BaseModel):
    distance_km: Optional[float] = None
    duration_min: Optional[int] = None
    stop_count: int = 0


class TripStateResponse(BaseModel):
    stops: List[StopModel]
    start_location: str
    current_stop_index: int
    can_advance: bool
    route_available: bool
    summary: TripSummaryModel
    current_leg: Optional[LegModel] = None
    instructions_text: str
    markers: List[MarkerModel]
    engine_state: str
    route_unavailable_reason: Optional[str] = None


class StartLocationRequest(BaseModel):
    address: str = Field(..., min_length=1)


class MapClickRequest(BaseModel):
    lng: float = Field(..., ge=-180, le=180)
    lat: float = Field(..., ge=-90, le=90)


class ClickedLocationResponse(BaseModel):
    position: Tuple[float, float]
    address: Optional[str] = None


class MapConfigResponse(BaseModel):
    access_token: Optional[str] = None
    style: str
    center: Tuple[float, float]
    zoom: float


class FeatureCollectionResponse(BaseModel):
    type: str = "FeatureCollection"
    features: List[Dict[str, Any]]
