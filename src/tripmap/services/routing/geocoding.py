"""Reverse geocoding for clicked map locations."""

from __future__ import annotations

import logging

import httpx

from ...config import settings

logger = logging.getLogger(__name__)


class GeocodingClient:
    def __init__(
        self,
        access_token: str,
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not access_token:
            raise ValueError("A map access token is required for geocoding.")
        self.access_token = access_token
        self.base_url = (base_url or settings.geocoding_base_url).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def reverse_geocode(self, lng: float, lat: float) -> str | None:
        """Return the best place name for a coordinate, or ``None``.

        Lookups are a convenience for the clicked-location popup, so every
        failure degrades to ``None``.
        """
        url = f"{self.base_url}/geocoding/v5/mapbox.places/{lng},{lat}.json"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params={"access_token": self.access_token})
                response.raise_for_status()
                features = response.json().get("features") or []
                return features[0].get("place_name") if features else None
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.error(f"Error reverse geocoding {lng},{lat}: {e}")
            return None
