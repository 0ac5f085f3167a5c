"""HTTP client for the marker/directions backend."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import httpx
from pydantic import TypeAdapter, ValidationError

from ...config import settings
from ...models.domain import Waypoint
from ...schemas.directions import MapboxTokenResponse, MarkerRecord

logger = logging.getLogger(__name__)

_MARKER_LIST = TypeAdapter(list[MarkerRecord])


class BackendError(Exception):
    """Transport, status or payload failure talking to the backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TripBackendClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.backend_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("Backend base URL is not configured.")
        self.timeout = timeout if timeout is not None else settings.backend_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.backend_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.backend_backoff_seconds
        # Injected by tests (httpx.MockTransport)
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        retries: int = 0,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        ``retries`` is the number of extra attempts allowed for timeouts,
        network errors and 5xx responses. Callers pass 0 for anything that
        must not be repeated.
        """
        attempt = 0
        async with self._get_client() as client:
            while True:
                try:
                    response = await client.request(method, path, params=params, json=json)
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError as e:
                    status_code = e.response.status_code
                    attempt += 1
                    if status_code < 500 or attempt > retries:
                        raise BackendError(
                            f"{method} {path} failed with status {status_code}", status_code=status_code
                        ) from e
                    wait_time = self.backoff_seconds * attempt
                    logger.warning(f"{method} {path} returned {status_code}, retrying in {wait_time:.1f}s")
                    await asyncio.sleep(wait_time)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > retries:
                        raise BackendError(f"{method} {path} timed out after {attempt} attempt(s): {e}") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"{method} {path} timed out, retrying in {wait_time:.1f}s (attempt {attempt}/{retries})")
                    await asyncio.sleep(wait_time)
                except httpx.TransportError as e:
                    attempt += 1
                    if attempt > retries:
                        raise BackendError(f"Failed to reach backend at {self.base_url}: {e}") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"{method} {path} network error, retrying in {wait_time:.1f}s: {e}")
                    await asyncio.sleep(wait_time)
                except ValueError as e:
                    # Undecodable JSON body
                    raise BackendError(f"{method} {path} returned a non-JSON body: {e}") from e

    async def get_markers(self) -> list[Waypoint]:
        """Fetch the persisted stop list (``GET /get_markers``)."""
        data = await self._request("GET", "/get_markers", retries=self.max_retries)
        try:
            records = _MARKER_LIST.validate_python(data)
        except ValidationError as e:
            raise BackendError(f"Malformed marker list: {e.error_count()} validation error(s)") from e
        return [Waypoint(address=record.address, lat=record.lat, lng=record.lng) for record in records]

    async def delete_marker(self, address: str) -> None:
        """Delete a stop on the backend (``POST /delete_marker``); never retried."""
        await self._request("POST", "/delete_marker", json={"address": address})

    async def directions(self, origin: str, destination: str, waypoints: Sequence[str] = ()) -> dict:
        """Request an optimized route.

        ``origin``/``destination``/``waypoints`` are ``lat,lng`` strings. The
        intermediate waypoints are sent as one ``|``-separated list that the
        backend is free to reorder.
        """
        params = {"origin": origin, "destination": destination}
        if waypoints:
            params["waypoints"] = "|".join(waypoints)
        logger.debug(f"Requesting directions {origin} -> {destination} via {len(waypoints)} waypoint(s)")
        data = await self._request("GET", "/directions", params=params)
        if not isinstance(data, dict):
            raise BackendError("Directions response is not a JSON object.")
        return data

    async def get_mapbox_token(self) -> str | None:
        """Fetch the map tile token (``GET /get_mapbox_token``)."""
        data = await self._request("GET", "/get_mapbox_token", retries=self.max_retries)
        try:
            token = MapboxTokenResponse.model_validate(data).mapbox_token
        except ValidationError as e:
            raise BackendError("Malformed token response") from e
        return token or None


async def check_health(base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None) -> bool:
    """Check backend reachability with a single marker-list request."""
    base = base_url or settings.backend_base_url
    if not base:
        return False
    try:
        client = TripBackendClient(base_url=base, timeout=5.0, max_retries=0, transport=transport)
        await client.get_markers()
        return True
    except BackendError:
        return False
