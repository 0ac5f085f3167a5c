from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from src.tripmap.models.domain import Waypoint
from src.tripmap.services.routing import polyline


def build_payload(
    stop_count: int,
    waypoint_order: list[int] | None = None,
    distance: float = 1000,
    duration: float = 120,
    points: list[tuple[float, float]] | None = None,
) -> dict:
    """Directions payload for ``stop_count`` stops (one leg per consecutive pair)."""
    legs = [
        {
            "distance": {"value": distance, "text": f"{distance / 1000:.1f} km"},
            "duration": {"value": duration, "text": f"{int(duration // 60)} mins"},
            "steps": [
                {
                    "html_instructions": f"Head <b>north</b> on <div style=\"font-size:0.9em\">Leg {index} Rd</div>",
                    "distance": {"text": "0.5 km"},
                    "duration": {"text": "1 min"},
                },
                {
                    "html_instructions": "Turn <b>left</b>",
                    "distance": {"text": "0.5 km"},
                    "duration": {"text": "1 min"},
                },
            ],
        }
        for index in range(stop_count - 1)
    ]
    return {
        "routes": [
            {
                "overview_polyline": {"points": polyline.encode(points or [(-79.72, 43.22), (-79.71, 43.23)])},
                "waypoint_order": waypoint_order if waypoint_order is not None else list(range(max(stop_count - 2, 0))),
                "legs": legs,
            }
        ]
    }


class IdentityDirections:
    """Directions backend that keeps the submitted order and answers immediately."""

    def __init__(self, waypoint_order: list[int] | None = None) -> None:
        self.calls: list[tuple[str, str, list[str]]] = []
        self.waypoint_order = waypoint_order

    async def directions(self, origin, destination, waypoints=()):
        self.calls.append((origin, destination, list(waypoints)))
        order = self.waypoint_order if len(self.calls) == 1 else None
        return build_payload(len(waypoints) + 2, waypoint_order=order)


@dataclass
class PendingCall:
    origin: str
    destination: str
    waypoints: list[str]
    future: asyncio.Future = field(repr=False)

    def resolve(self, waypoint_order: list[int] | None = None) -> None:
        self.future.set_result(build_payload(len(self.waypoints) + 2, waypoint_order=waypoint_order))


class ControlledDirections:
    """Directions backend whose responses are released by the test, in any order."""

    def __init__(self) -> None:
        self.calls: list[PendingCall] = []

    async def directions(self, origin, destination, waypoints=()):
        future = asyncio.get_running_loop().create_future()
        self.calls.append(PendingCall(origin, destination, list(waypoints), future))
        return await future


async def drain(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def stops() -> list[Waypoint]:
    return [
        Waypoint(address="1 King St, Hamilton", lat=43.2557, lng=-79.8711),
        Waypoint(address="2 Main St, Hamilton", lat=43.2500, lng=-79.8600),
        Waypoint(address="3 James St, Hamilton", lat=43.2600, lng=-79.8690),
        Waypoint(address="4 Bay St, Hamilton", lat=43.2580, lng=-79.8750),
    ]
