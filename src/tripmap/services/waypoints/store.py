"""Canonical ordered stop list and the current-stop pointer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from ...models.domain import Waypoint, order_keys

logger = logging.getLogger(__name__)


class StoreChange(str, Enum):
    LOADED = "loaded"
    DELETED = "deleted"
    START_CHANGED = "start_changed"
    OPTIMIZED = "optimized"
    ADVANCED = "advanced"


@dataclass(frozen=True, slots=True)
class StoreEvent:
    kind: StoreChange
    waypoints: tuple[Waypoint, ...]
    start_location: str
    current_stop_index: int

    @property
    def order_keys(self) -> tuple[str, ...]:
        return order_keys(self.waypoints)


StoreListener = Callable[[StoreEvent], None]


class WaypointStore:
    """Single writer of the stop list and ``current_stop_index``.

    Every mutation is synchronous and leaves the index within bounds for the
    new list. Listeners are notified after the state is fully updated.
    Routes are never computed here; ``route_available`` only records whether
    the last published route still matches the list.
    """

    def __init__(self) -> None:
        self._waypoints: tuple[Waypoint, ...] = ()
        self._current_stop_index = 0
        self._start_location = ""
        self._route_available = False
        self._listeners: list[StoreListener] = []

    @property
    def waypoints(self) -> tuple[Waypoint, ...]:
        return self._waypoints

    @property
    def current_stop_index(self) -> int:
        return self._current_stop_index

    @property
    def start_location(self) -> str:
        return self._start_location

    @property
    def route_available(self) -> bool:
        return self._route_available

    @property
    def can_advance(self) -> bool:
        return self._route_available and self._current_stop_index < len(self._waypoints) - 1

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self, kind: StoreChange) -> None:
        event = StoreEvent(
            kind=kind,
            waypoints=self._waypoints,
            start_location=self._start_location,
            current_stop_index=self._current_stop_index,
        )
        for listener in list(self._listeners):
            listener(event)

    def _replace(self, waypoints: Iterable[Waypoint]) -> None:
        self._waypoints = tuple(waypoints)
        self._current_stop_index = 0
        self._route_available = False

    def _find(self, address: str) -> Waypoint | None:
        return next((waypoint for waypoint in self._waypoints if waypoint.address == address), None)

    def _start_first(self, waypoints: tuple[Waypoint, ...], address: str) -> tuple[Waypoint, ...]:
        start = next((waypoint for waypoint in waypoints if waypoint.address == address), None)
        if start is None:
            return waypoints
        return (start, *(waypoint for waypoint in waypoints if waypoint.address != address))

    def load(self, initial: Iterable[Waypoint]) -> None:
        """Replace the list with a freshly fetched one.

        The first stop becomes the start location when none is chosen yet.
        A previously chosen start that is still present is moved to the front;
        one that disappeared is replaced by the new first stop.
        """
        waypoints = tuple(initial)
        if self._start_location and any(waypoint.address == self._start_location for waypoint in waypoints):
            waypoints = self._start_first(waypoints, self._start_location)
        else:
            self._start_location = waypoints[0].address if waypoints else ""
        self._replace(waypoints)
        logger.info(f"Loaded {len(waypoints)} stop(s); start location {self._start_location!r}")
        self._notify(StoreChange.LOADED)

    def delete(self, address: str) -> bool:
        """Remove every stop with ``address``; returns ``False`` when none matched."""
        if self._find(address) is None:
            logger.error(f"Cannot delete stop {address!r}: not in the current list.")
            return False
        remaining = tuple(waypoint for waypoint in self._waypoints if waypoint.address != address)
        if self._start_location == address:
            self._start_location = remaining[0].address if remaining else ""
        self._replace(remaining)
        self._notify(StoreChange.DELETED)
        return True

    def set_start_location(self, address: str) -> bool:
        """Move the stop with ``address`` to the front, keeping the others' relative order."""
        if self._find(address) is None:
            logger.error(f"Start location {address!r} not found among current stops.")
            return False
        self._start_location = address
        self._replace(self._start_first(self._waypoints, address))
        self._notify(StoreChange.START_CHANGED)
        return True

    def advance_current_stop(self) -> bool:
        """Step to the next leg; a no-op at the last stop or without a route."""
        if not self.can_advance:
            return False
        self._current_stop_index += 1
        self._notify(StoreChange.ADVANCED)
        return True

    def apply_optimized_order(self, waypoints: Iterable[Waypoint]) -> None:
        """Adopt the backend's visiting order for the same set of stops."""
        waypoints = tuple(waypoints)
        if sorted(order_keys(waypoints)) != sorted(order_keys(self._waypoints)):
            raise ValueError("Optimized order must be a permutation of the current stops.")
        if order_keys(waypoints) == order_keys(self._waypoints):
            return
        self._replace(waypoints)
        self._notify(StoreChange.OPTIMIZED)

    def set_route_available(self, available: bool) -> None:
        self._route_available = available
