"""Map view boundary and its GeoJSON implementation."""

from .base import MapView
from .geojson import GeoJSONMapView
from .renderer import MapRenderer

__all__ = ["MapView", "GeoJSONMapView", "MapRenderer"]
