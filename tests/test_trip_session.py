import asyncio

import pytest

from conftest import build_payload
from src.tripmap.services.routing.backend_client import BackendError
from src.tripmap.services.trip.session import NO_INSTRUCTIONS, TripSession


class DummyBackend:
    def __init__(self, markers, token="pk.test"):
        self.markers = list(markers)
        self.token = token
        self.deleted = []
        self.direction_calls = 0
        self.token_calls = 0
        self.fail_markers = False
        self.fail_delete = False

    async def get_markers(self):
        if self.fail_markers:
            raise BackendError("GET /get_markers failed with status 500", status_code=500)
        return list(self.markers)

    async def delete_marker(self, address):
        if self.fail_delete:
            raise BackendError("POST /delete_marker failed with status 500", status_code=500)
        self.deleted.append(address)
        self.markers = [marker for marker in self.markers if marker.address != address]

    async def directions(self, origin, destination, waypoints=()):
        self.direction_calls += 1
        return build_payload(len(waypoints) + 2, distance=2500, duration=754)

    async def get_mapbox_token(self):
        self.token_calls += 1
        return self.token


class DummyGeocoder:
    def __init__(self, name="1 King St W, Hamilton, Ontario"):
        self.name = name
        self.calls = []

    async def reverse_geocode(self, lng, lat):
        self.calls.append((lng, lat))
        return self.name


def test_refresh_loads_markers_and_route(stops):
    session = TripSession(client=DummyBackend(stops))

    assert asyncio.run(session.refresh()) is True

    summary = session.summary()
    assert summary.stop_count == 4
    assert summary.distance_km == 7.5
    assert summary.duration_min == 37
    assert len(summary.instructions) == 6
    assert session.store.start_location == stops[0].address
    assert len(session.view.markers) == 4
    assert session.view.route_line is not None


def test_refresh_failure_keeps_state(stops):
    backend = DummyBackend(stops)
    session = TripSession(client=backend)
    asyncio.run(session.refresh())
    backend.fail_markers = True

    assert asyncio.run(session.refresh()) is False
    assert len(session.store.waypoints) == 4


def test_instructions_follow_current_stop(stops):
    session = TripSession(client=DummyBackend(stops[:3]))
    asyncio.run(session.refresh())

    first = session.current_instructions_text()
    assert session.next_stop() is True
    second = session.current_instructions_text()
    assert session.next_stop() is True

    assert first.splitlines() == [
        f"From {stops[0].address} to {stops[1].address}",
        "- Head north on Leg 0 Rd",
        "- Turn left",
    ]
    assert second.startswith(f"From {stops[1].address} to {stops[2].address}")
    assert session.current_instructions_text() == NO_INSTRUCTIONS
    assert session.next_stop() is False


def test_delete_stop_goes_through_backend(stops):
    backend = DummyBackend(stops)
    session = TripSession(client=backend)
    asyncio.run(session.refresh())

    assert asyncio.run(session.delete_stop(stops[2].address)) is True

    assert backend.deleted == [stops[2].address]
    assert [w.address for w in session.store.waypoints] == [stops[0].address, stops[1].address, stops[3].address]
    assert session.engine.route is not None
    assert len(session.engine.route.legs) == 2


def test_delete_stop_rejected_by_backend_keeps_stop(stops):
    backend = DummyBackend(stops)
    session = TripSession(client=backend)
    asyncio.run(session.refresh())
    backend.fail_delete = True

    with pytest.raises(BackendError):
        asyncio.run(session.delete_stop(stops[2].address))

    assert len(session.store.waypoints) == 4


def test_delete_unknown_stop_raises_key_error(stops):
    backend = DummyBackend(stops)
    session = TripSession(client=backend)
    asyncio.run(session.refresh())

    with pytest.raises(KeyError):
        asyncio.run(session.delete_stop("nowhere"))
    assert backend.deleted == []


def test_deleting_to_single_stop_shows_no_instructions(stops):
    backend = DummyBackend(stops[:2])
    session = TripSession(client=backend)
    asyncio.run(session.refresh())

    asyncio.run(session.delete_stop(stops[1].address))

    assert backend.direction_calls == 1
    assert session.summary().distance_km is None
    assert session.current_instructions_text() == NO_INSTRUCTIONS
    assert session.view.route_line is None


def test_change_start_reorders_and_requests_once(stops):
    backend = DummyBackend(stops[:3])
    session = TripSession(client=backend)
    asyncio.run(session.refresh())

    assert asyncio.run(session.change_start(stops[2].address)) is True
    assert asyncio.run(session.change_start("nowhere")) is False

    assert backend.direction_calls == 2
    assert session.ordered_stops_text() == "\n".join([
        f"1. {stops[2].address}",
        f"2. {stops[0].address}",
        f"3. {stops[1].address}",
    ])


def test_map_config_fetches_token_once(stops):
    backend = DummyBackend(stops)
    session = TripSession(client=backend)

    async def scenario():
        await session.map_config()
        return await session.map_config()

    config = asyncio.run(scenario())

    assert config.access_token == "pk.test"
    assert config.style.startswith("mapbox://")
    assert backend.token_calls == 1


def test_click_location_reverse_geocodes_into_temporary_marker(stops):
    geocoder = DummyGeocoder()
    session = TripSession(client=DummyBackend(stops), geocoder=geocoder)

    marker = asyncio.run(session.click_location(-79.87, 43.25))

    assert geocoder.calls == [(-79.87, 43.25)]
    assert marker.position == (-79.87, 43.25)
    assert marker.address == "1 King St W, Hamilton, Ontario"


def test_click_location_without_token_still_marks_point(stops):
    session = TripSession(client=DummyBackend(stops, token=None))

    marker = asyncio.run(session.click_location(-79.87, 43.25))

    assert marker.address is None
    assert session.view.temporary_marker is marker
