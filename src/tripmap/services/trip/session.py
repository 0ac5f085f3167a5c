"""Trip planning session orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ...config import settings
from ...models.domain import Leg, MarkerStyle, TripSummary
from ..mapview.geojson import GeoJSONMapView, TemporaryMarker
from ..mapview.renderer import MapRenderer
from ..presentation.markers import present
from ..routing.backend_client import BackendError, TripBackendClient
from ..routing.engine import RouteSyncEngine
from ..routing.geocoding import GeocodingClient
from ..waypoints.store import WaypointStore

logger = logging.getLogger(__name__)

NO_INSTRUCTIONS = "No instructions available."


@dataclass(slots=True)
class MapConfig:
    access_token: Optional[str]
    style: str
    center: tuple[float, float]
    zoom: float


class TripSession:
    """One user's trip: stop list, route synchronization and the map view."""

    def __init__(
        self,
        client: TripBackendClient,
        view: GeoJSONMapView | None = None,
        geocoder: GeocodingClient | None = None,
    ) -> None:
        self.client = client
        self.store = WaypointStore()
        self.engine = RouteSyncEngine(self.store, client)
        self.view = view or GeoJSONMapView(center=settings.map_center, zoom=settings.map_zoom)
        self.renderer = MapRenderer(self.store, self.engine, self.view)
        self._geocoder = geocoder
        self._map_token: str | None = None
        self._map_initialized = False
        self.view.on_click(self._on_map_click)
        self.renderer.render()

    async def refresh(self) -> bool:
        """Fetch the persisted stops and load them; state is kept on failure."""
        try:
            waypoints = await self.client.get_markers()
        except BackendError as e:
            logger.error(f"Error fetching markers: {e}")
            return False
        self.store.load(waypoints)
        await self.engine.settle()
        return True

    async def delete_stop(self, address: str) -> bool:
        """Delete on the backend first; the stop is removed locally only on success.

        Raises:
            KeyError: if no current stop has ``address``.
            BackendError: if the backend rejected the deletion.
        """
        if not any(waypoint.address == address for waypoint in self.store.waypoints):
            raise KeyError(address)
        try:
            await self.client.delete_marker(address)
        except BackendError as e:
            logger.error(f"Error deleting marker {address!r}: {e}")
            raise
        removed = self.store.delete(address)
        await self.engine.settle()
        return removed

    async def change_start(self, address: str) -> bool:
        changed = self.store.set_start_location(address)
        if changed:
            await self.engine.settle()
        return changed

    def next_stop(self) -> bool:
        return self.store.advance_current_stop()

    def current_leg(self) -> Leg | None:
        route = self.engine.route
        index = self.store.current_stop_index
        if route is None or index >= len(route.legs):
            return None
        return route.legs[index]

    def current_instructions_text(self) -> str:
        leg = self.current_leg()
        if leg is None:
            return NO_INSTRUCTIONS
        lines = [f"From {leg.start_address} to {leg.end_address}"]
        lines.extend(f"- {step.instruction_text}" for step in leg.steps)
        return "\n".join(lines)

    def summary(self) -> TripSummary:
        route = self.engine.route
        if route is None:
            return TripSummary(stop_count=len(self.store.waypoints))
        return TripSummary(
            distance_km=round(route.total_distance_meters / 1000, 2),
            duration_min=int(route.total_duration_seconds // 60),
            stop_count=len(self.store.waypoints),
            instructions=route.instructions,
        )

    def ordered_stops_text(self) -> str:
        return "\n".join(f"{index + 1}. {waypoint.address}" for index, waypoint in enumerate(self.store.waypoints))

    def marker_styles(self) -> list[MarkerStyle]:
        return present(self.store.waypoints, self.store.current_stop_index)

    async def map_config(self) -> MapConfig:
        """Fetch the map token once; later calls reuse it."""
        if not self._map_initialized:
            try:
                self._map_token = await self.client.get_mapbox_token()
            except BackendError as e:
                logger.error(f"Error fetching map token: {e}")
                self._map_token = None
            if not self._map_token:
                logger.error("Failed to retrieve map token; reverse geocoding disabled")
            elif self._geocoder is None:
                self._geocoder = GeocodingClient(access_token=self._map_token)
            self._map_initialized = True
        return MapConfig(
            access_token=self._map_token,
            style=settings.map_style,
            center=settings.map_center,
            zoom=settings.map_zoom,
        )

    async def _on_map_click(self, lng: float, lat: float) -> None:
        address = None
        if self._geocoder is not None:
            address = await self._geocoder.reverse_geocode(lng, lat)
        self.view.show_temporary_marker((lng, lat), address)

    async def click_location(self, lng: float, lat: float) -> TemporaryMarker | None:
        await self.map_config()
        await self.view.click(lng, lat)
        return self.view.temporary_marker

    def select_marker(self, index: int) -> MarkerStyle:
        return self.view.select_marker(index)
