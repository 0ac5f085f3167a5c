"""Keeps a map view in step with the store and the published route."""

from __future__ import annotations

from typing import Optional

from ...models.domain import RouteResult
from ..presentation.markers import present
from ..routing.engine import RouteSyncEngine
from ..waypoints.store import StoreEvent, WaypointStore
from .base import MapView


class MapRenderer:
    def __init__(self, store: WaypointStore, engine: RouteSyncEngine, view: MapView) -> None:
        self._store = store
        self._engine = engine
        self._view = view
        store.subscribe(self._on_store_change)
        engine.subscribe(self._on_route)

    def render(self) -> None:
        self._view.add_or_replace_markers(present(self._store.waypoints, self._store.current_stop_index))
        self._draw_route(self._engine.route)

    def _draw_route(self, route: Optional[RouteResult]) -> None:
        if route is None or len(self._store.waypoints) < 2:
            self._view.set_route_line(None)
        else:
            self._view.set_route_line(route.geometry)

    def _on_store_change(self, event: StoreEvent) -> None:
        self._view.add_or_replace_markers(present(event.waypoints, event.current_stop_index))
        if len(event.waypoints) < 2:
            self._view.set_route_line(None)

    def _on_route(self, route: Optional[RouteResult]) -> None:
        self._draw_route(route)
