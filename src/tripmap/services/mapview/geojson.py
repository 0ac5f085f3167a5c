"""In-memory map view that renders to a GeoJSON FeatureCollection."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ...models.domain import TEMPORARY_MARKER_COLOR, LngLat, MarkerStyle
from .base import ClickHandler

ROUTE_LAYER_ID = "routeLine"
ROUTE_LINE_COLOR = "#0074D9"
ROUTE_LINE_WIDTH = 4
MARKER_FOCUS_ZOOM = 15.0


@dataclass(slots=True)
class TemporaryMarker:
    position: LngLat
    address: Optional[str]

    @property
    def popup_html(self) -> str:
        return (
            "<div><h4>Clicked Location</h4>"
            f"<p><strong>Address:</strong> {self.address}</p></div>"
        )


class GeoJSONMapView:
    """Holds the rendered state of one map and exports it as GeoJSON.

    Markers are re-rendered from scratch on every update: previous markers,
    their popups and the temporary clicked-location marker are removed
    before the new set is added, so nothing accumulates.
    """

    def __init__(self, center: LngLat, zoom: float) -> None:
        self.center = center
        self.zoom = zoom
        self._markers: list[MarkerStyle] = []
        self._open_popups: set[int] = set()
        self._route_line: tuple[LngLat, ...] | None = None
        self._temporary: TemporaryMarker | None = None
        self._click_handlers: list[ClickHandler] = []

    @property
    def markers(self) -> list[MarkerStyle]:
        return list(self._markers)

    @property
    def open_popups(self) -> set[int]:
        return set(self._open_popups)

    @property
    def route_line(self) -> tuple[LngLat, ...] | None:
        return self._route_line

    @property
    def temporary_marker(self) -> TemporaryMarker | None:
        return self._temporary

    def add_or_replace_markers(self, styles: Sequence[MarkerStyle]) -> None:
        self.close_all_popups()
        self._markers = list(styles)

    def set_route_line(self, geometry: Optional[Sequence[LngLat]]) -> None:
        self._route_line = tuple(geometry) if geometry else None

    def fly_to(self, point: LngLat, zoom: Optional[float] = None) -> None:
        self.center = point
        if zoom is not None:
            self.zoom = zoom

    def on_click(self, handler: ClickHandler) -> None:
        self._click_handlers.append(handler)

    def close_all_popups(self) -> None:
        self._open_popups.clear()
        self._temporary = None

    def select_marker(self, index: int) -> MarkerStyle:
        """Marker click: focus the camera on it and open only its popup."""
        if not 0 <= index < len(self._markers):
            raise IndexError(f"No marker at index {index}")
        marker = self._markers[index]
        self.close_all_popups()
        self.fly_to(marker.position, MARKER_FOCUS_ZOOM)
        self._open_popups.add(index)
        return marker

    def show_temporary_marker(self, position: LngLat, address: Optional[str]) -> TemporaryMarker:
        self._temporary = TemporaryMarker(position=position, address=address)
        return self._temporary

    async def click(self, lng: float, lat: float) -> None:
        """Map click on empty area: close popups and notify click handlers."""
        self.close_all_popups()
        for handler in list(self._click_handlers):
            result = handler(lng, lat)
            if inspect.isawaitable(result):
                await result

    def to_feature_collection(self) -> Dict[str, Any]:
        features: List[Dict[str, Any]] = []
        if self._route_line:
            features.append({
                "type": "Feature",
                "id": ROUTE_LAYER_ID,
                "geometry": {
                    "type": "LineString",
                    "coordinates": [list(point) for point in self._route_line],
                },
                "properties": {
                    "layer": ROUTE_LAYER_ID,
                    "line-color": ROUTE_LINE_COLOR,
                    "line-width": ROUTE_LINE_WIDTH,
                },
            })
        for index, marker in enumerate(self._markers):
            features.append({
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": list(marker.position)},
                "properties": {
                    "index": index,
                    "role": marker.color_class.value,
                    "color": marker.color,
                    "popup": marker.popup_text,
                    "popup_open": index in self._open_popups,
                },
            })
        if self._temporary is not None:
            features.append({
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": list(self._temporary.position)},
                "properties": {
                    "role": "temporary",
                    "color": TEMPORARY_MARKER_COLOR,
                    "popup_html": self._temporary.popup_html,
                    "popup_open": True,
                },
            })
        return {"type": "FeatureCollection", "features": features}
