"""Marker styling for the current position in the trip."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import MarkerRole, MarkerStyle, Waypoint


def marker_role(index: int, current_stop_index: int) -> MarkerRole:
    if index == current_stop_index:
        return MarkerRole.CURRENT
    if index == current_stop_index + 1:
        return MarkerRole.NEXT
    return MarkerRole.DEFAULT


def present(waypoints: Sequence[Waypoint], current_stop_index: int) -> list[MarkerStyle]:
    """Style every stop: the current one, the next one, and the rest."""
    return [
        MarkerStyle(
            position=waypoint.position,
            color_class=marker_role(index, current_stop_index),
            popup_text=waypoint.address,
        )
        for index, waypoint in enumerate(waypoints)
    ]
