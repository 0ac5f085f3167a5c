"""Domain models for trip stops, routes and marker styling."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# (longitude, latitude), the order the map view consumes
LngLat = tuple[float, float]

UNKNOWN_START = "Unknown Start"
UNKNOWN_END = "Unknown End"


@dataclass(frozen=True, slots=True)
class Waypoint:
    """One user-added stop.

    The address doubles as the identity key: two stops sharing an address
    cannot be told apart.
    """

    address: str
    lat: float
    lng: float

    @property
    def key(self) -> str:
        return self.address

    @property
    def position(self) -> LngLat:
        return (self.lng, self.lat)

    def as_query(self) -> str:
        """Render as the ``lat,lng`` pair the directions endpoint expects."""
        return f"{self.lat},{self.lng}"


def order_keys(waypoints: tuple[Waypoint, ...] | list[Waypoint]) -> tuple[str, ...]:
    """Identity sequence used to compare visiting orders by value."""
    return tuple(waypoint.key for waypoint in waypoints)


@dataclass(frozen=True, slots=True)
class Step:
    instruction_text: str
    distance_text: str
    duration_text: str


@dataclass(frozen=True, slots=True)
class Leg:
    start_address: str
    end_address: str
    steps: tuple[Step, ...]
    distance_meters: float = 0.0
    duration_seconds: float = 0.0


@dataclass(frozen=True, slots=True)
class RouteResult:
    """A computed route, tied to the visiting order it was computed for."""

    geometry: tuple[LngLat, ...]
    legs: tuple[Leg, ...]
    total_distance_meters: float
    total_duration_seconds: float
    optimized_order: tuple[Waypoint, ...]

    @property
    def order_keys(self) -> tuple[str, ...]:
        return order_keys(self.optimized_order)

    @property
    def instructions(self) -> list[str]:
        return [step.instruction_text for leg in self.legs for step in leg.steps]


class UnavailableReason(str, Enum):
    INSUFFICIENT_WAYPOINTS = "insufficient_waypoints"
    BACKEND_ERROR = "backend_error"


@dataclass(frozen=True, slots=True)
class RouteUnavailable:
    reason: UnavailableReason
    detail: str = ""


class MarkerRole(str, Enum):
    CURRENT = "current"
    NEXT = "next"
    DEFAULT = "default"


MARKER_COLORS: dict[MarkerRole, str] = {
    MarkerRole.CURRENT: "green",
    MarkerRole.NEXT: "blue",
    MarkerRole.DEFAULT: "purple",
}
TEMPORARY_MARKER_COLOR = "red"


@dataclass(frozen=True, slots=True)
class MarkerStyle:
    position: LngLat
    color_class: MarkerRole
    popup_text: str

    @property
    def color(self) -> str:
        return MARKER_COLORS[self.color_class]


@dataclass(slots=True)
class TripSummary:
    """Distance/duration panel values; both absent when there is no route."""

    distance_km: Optional[float] = None
    duration_min: Optional[int] = None
    stop_count: int = 0
    instructions: list[str] = field(default_factory=list)
