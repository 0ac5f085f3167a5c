"""Turn an ordered stop list into a directions request and normalize the reply."""

from __future__ import annotations

import logging
import re
from typing import Protocol, Sequence

from pydantic import ValidationError

from ...models.domain import (
    UNKNOWN_END,
    UNKNOWN_START,
    Leg,
    RouteResult,
    RouteUnavailable,
    Step,
    UnavailableReason,
    Waypoint,
)
from ...schemas.directions import DirectionsLeg, DirectionsResponse
from . import polyline
from .backend_client import BackendError

logger = logging.getLogger(__name__)

_TAG_PATTERN = re.compile(r"<[^>]*>")


class DirectionsProvider(Protocol):
    async def directions(self, origin: str, destination: str, waypoints: Sequence[str] = ()) -> dict: ...


def strip_markup(text: str | None) -> str:
    """Remove markup tags from a backend instruction string.

    Total and idempotent: after one pass no ``<...>`` sequence remains.
    """
    return _TAG_PATTERN.sub("", text or "")


def _visiting_order(
    stops: tuple[Waypoint, ...], waypoint_order: list[int] | None
) -> tuple[tuple[Waypoint | None, ...], tuple[Waypoint, ...]]:
    """Map ``waypoint_order`` onto the intermediate stops.

    Returns the per-position leg labels, with ``None`` where an index falls
    outside the intermediate stops, and the visiting order the store can
    adopt: the valid indices first (repeats dropped), then any intermediate
    stop the backend did not mention, in submitted order.
    """
    if not waypoint_order:
        return stops, stops

    origin, destination = stops[0], stops[-1]
    intermediate = stops[1:-1]
    mapped = tuple(intermediate[index] if 0 <= index < len(intermediate) else None for index in waypoint_order)
    chosen: list[int] = []
    for index in waypoint_order:
        if 0 <= index < len(intermediate) and index not in chosen:
            chosen.append(index)
    if len(chosen) != len(waypoint_order) or len(chosen) != len(intermediate):
        logger.warning(f"waypoint_order {waypoint_order} does not match {len(intermediate)} intermediate stop(s)")
    chosen.extend(index for index in range(len(intermediate)) if index not in chosen)
    adopted = (origin, *(intermediate[index] for index in chosen), destination)
    return (origin, *mapped, destination), adopted


def _leg_label(labels: tuple[Waypoint | None, ...], index: int, fallback: str) -> str:
    waypoint = labels[index] if 0 <= index < len(labels) else None
    if waypoint is not None and waypoint.address:
        return waypoint.address
    return fallback


def _build_leg(raw: DirectionsLeg, labels: tuple[Waypoint | None, ...], index: int) -> Leg:
    return Leg(
        start_address=_leg_label(labels, index, UNKNOWN_START),
        end_address=_leg_label(labels, index + 1, UNKNOWN_END),
        steps=tuple(
            Step(
                instruction_text=strip_markup(step.html_instructions),
                distance_text=step.distance.text,
                duration_text=step.duration.text,
            )
            for step in raw.steps
        ),
        distance_meters=raw.distance.value,
        duration_seconds=raw.duration.value,
    )


def _unavailable(detail: str) -> RouteUnavailable:
    logger.warning(f"Route unavailable: {detail}")
    return RouteUnavailable(reason=UnavailableReason.BACKEND_ERROR, detail=detail)


def parse_directions(payload: object, stops: Sequence[Waypoint]) -> RouteResult | RouteUnavailable:
    """Normalize a directions payload computed for ``stops`` into a ``RouteResult``."""
    stops = tuple(stops)
    try:
        response = DirectionsResponse.model_validate(payload)
    except ValidationError as e:
        return _unavailable(f"malformed directions payload ({e.error_count()} validation error(s))")

    route = response.routes[0]
    try:
        geometry = polyline.decode(route.overview_polyline.points)
    except polyline.MalformedPathError as e:
        return _unavailable(f"undecodable route geometry: {e}")

    labels, order = _visiting_order(stops, route.waypoint_order)
    legs = tuple(_build_leg(raw, labels, index) for index, raw in enumerate(route.legs))
    if len(legs) != len(order) - 1:
        logger.warning(f"Backend returned {len(legs)} leg(s) for {len(order)} stop(s)")

    return RouteResult(
        geometry=tuple(geometry),
        legs=legs,
        total_distance_meters=sum(leg.distance_meters for leg in legs),
        total_duration_seconds=sum(leg.duration_seconds for leg in legs),
        optimized_order=order,
    )


async def build_route(waypoints: Sequence[Waypoint], client: DirectionsProvider) -> RouteResult | RouteUnavailable:
    """Request an optimized route for ``waypoints`` (first = origin, last = destination).

    Fewer than two stops is answered locally without touching the network.
    Backend, payload and geometry failures come back as ``RouteUnavailable``.
    """
    stops = tuple(waypoints)
    if len(stops) < 2:
        return RouteUnavailable(
            reason=UnavailableReason.INSUFFICIENT_WAYPOINTS,
            detail="At least 2 waypoints are required.",
        )

    origin, destination = stops[0], stops[-1]
    intermediate = stops[1:-1]
    try:
        payload = await client.directions(
            origin.as_query(),
            destination.as_query(),
            [waypoint.as_query() for waypoint in intermediate],
        )
    except BackendError as e:
        return _unavailable(f"directions request failed: {e}")
    return parse_directions(payload, stops)
