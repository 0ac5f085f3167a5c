"""Reactive route recomputation driven by waypoint store changes.

Every structural store change starts a new recomputation job. Jobs are not
cancelled; each carries the generation it was started under, and only the
job of the latest generation whose stop order still matches the store may
publish. When the backend reorders the stops, the store adopts that order
and the resulting change is recognised as already satisfied by the route
just published, so the feedback loop stops after one request.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from ...models.domain import RouteResult, RouteUnavailable, UnavailableReason, Waypoint, order_keys
from ..waypoints.store import StoreChange, StoreEvent, WaypointStore
from .builder import DirectionsProvider, build_route

logger = logging.getLogger(__name__)

RouteListener = Callable[[Optional[RouteResult]], None]


class EngineState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    APPLYING = "applying"
    UNAVAILABLE = "unavailable"


class RouteSyncEngine:
    def __init__(self, store: WaypointStore, client: DirectionsProvider, builder=build_route) -> None:
        self._store = store
        self._client = client
        self._builder = builder
        self._generation = 0
        self._tasks: set[asyncio.Task] = set()
        self._route: RouteResult | None = None
        self._last_failure: RouteUnavailable | None = None
        self._listeners: list[RouteListener] = []
        self.state = EngineState.IDLE
        self.requests_issued = 0
        store.subscribe(self._on_store_change)

    @property
    def route(self) -> RouteResult | None:
        return self._route

    @property
    def last_failure(self) -> RouteUnavailable | None:
        return self._last_failure

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, listener: RouteListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _on_store_change(self, event: StoreEvent) -> None:
        if event.kind is StoreChange.ADVANCED:
            return
        if (
            event.kind is StoreChange.OPTIMIZED
            and self._route is not None
            and self._route.order_keys == event.order_keys
        ):
            logger.debug("Optimized order adopted; route already matches, no recomputation")
            return
        self.recompute()

    def recompute(self) -> asyncio.Task | None:
        """Start a job for the store's current list, superseding any job in flight.

        Must be called from a running event loop when the list has at least
        two stops. Shorter lists publish "no route" immediately.
        """
        self._generation += 1
        generation = self._generation
        waypoints = self._store.waypoints
        if len(waypoints) < 2:
            self._last_failure = RouteUnavailable(
                reason=UnavailableReason.INSUFFICIENT_WAYPOINTS,
                detail="At least 2 waypoints are required.",
            )
            self._publish(None, EngineState.UNAVAILABLE)
            return None

        self.state = EngineState.REQUESTING
        self.requests_issued += 1
        task = asyncio.get_running_loop().create_task(self._run(generation, waypoints))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _is_current(self, generation: int, submitted: tuple[Waypoint, ...]) -> bool:
        return generation == self._generation and order_keys(submitted) == order_keys(self._store.waypoints)

    async def _run(self, generation: int, submitted: tuple[Waypoint, ...]) -> None:
        try:
            outcome = await self._builder(submitted, self._client)
        except Exception:
            logger.exception("Unexpected error while computing route")
            if self._is_current(generation, submitted):
                self._last_failure = RouteUnavailable(reason=UnavailableReason.BACKEND_ERROR, detail="unexpected error")
                self._publish(None, EngineState.UNAVAILABLE)
            return

        if not self._is_current(generation, submitted):
            logger.debug(f"Discarding stale route response (generation {generation}, current {self._generation})")
            return

        if isinstance(outcome, RouteUnavailable):
            self._last_failure = outcome
            self._publish(None, EngineState.UNAVAILABLE)
            return

        self.state = EngineState.APPLYING
        self._route = outcome
        self._last_failure = None
        # The adopted order is recognised in _on_store_change because _route is already set.
        self._store.apply_optimized_order(outcome.optimized_order)
        self._publish(outcome, EngineState.APPLYING)

    def _publish(self, route: RouteResult | None, state: EngineState) -> None:
        self.state = state
        self._route = route
        self._store.set_route_available(route is not None)
        if route is not None:
            logger.info(
                f"Published route over {len(route.optimized_order)} stop(s): "
                f"{route.total_distance_meters:.0f} m, {route.total_duration_seconds:.0f} s"
            )
        for listener in list(self._listeners):
            listener(route)
        # UNAVAILABLE is held until the next recompute.
        if state is EngineState.APPLYING:
            self.state = EngineState.IDLE

    async def settle(self) -> None:
        """Wait until no recomputation job is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
