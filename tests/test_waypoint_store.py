import logging
import random

import pytest

from src.tripmap.models.domain import Waypoint
from src.tripmap.services.waypoints.store import StoreChange, WaypointStore


def _addresses(store: WaypointStore) -> list[str]:
    return [waypoint.address for waypoint in store.waypoints]


def test_load_selects_first_stop_as_start(stops):
    store = WaypointStore()
    events = []
    store.subscribe(events.append)

    store.load(stops)

    assert store.start_location == stops[0].address
    assert store.current_stop_index == 0
    assert [event.kind for event in events] == [StoreChange.LOADED]
    assert events[0].waypoints == tuple(stops)


def test_reload_keeps_chosen_start_in_front(stops):
    store = WaypointStore()
    store.load(stops)
    store.set_start_location(stops[2].address)

    store.load(stops)

    assert store.start_location == stops[2].address
    assert _addresses(store)[0] == stops[2].address


def test_reload_without_chosen_start_falls_back_to_first(stops):
    store = WaypointStore()
    store.load(stops)
    store.set_start_location(stops[3].address)

    store.load(stops[:2])

    assert store.start_location == stops[0].address


def test_load_empty_list():
    store = WaypointStore()

    store.load([])

    assert store.waypoints == ()
    assert store.current_stop_index == 0
    assert store.start_location == ""


def test_delete_removes_stop_and_resets_index(stops):
    store = WaypointStore()
    store.load(stops)
    store.set_route_available(True)
    store.advance_current_stop()

    assert store.delete(stops[1].address) is True

    assert _addresses(store) == [stops[0].address, stops[2].address, stops[3].address]
    assert store.current_stop_index == 0
    assert store.route_available is False


def test_delete_unknown_address_is_a_logged_no_op(stops, caplog):
    store = WaypointStore()
    store.load(stops)
    events = []
    store.subscribe(events.append)

    with caplog.at_level(logging.ERROR):
        assert store.delete("nowhere") is False

    assert _addresses(store) == [stop.address for stop in stops]
    assert events == []
    assert "nowhere" in caplog.text


def test_delete_start_location_moves_start_to_new_first(stops):
    store = WaypointStore()
    store.load(stops)

    store.delete(stops[0].address)

    assert store.start_location == stops[1].address


def test_delete_removes_every_stop_sharing_the_address():
    store = WaypointStore()
    store.load([
        Waypoint(address="Same", lat=1.0, lng=1.0),
        Waypoint(address="Other", lat=2.0, lng=2.0),
        Waypoint(address="Same", lat=3.0, lng=3.0),
    ])

    store.delete("Same")

    assert _addresses(store) == ["Other"]


def test_set_start_location_moves_stop_first_and_keeps_relative_order(stops):
    store = WaypointStore()
    store.load(stops)
    events = []
    store.subscribe(events.append)

    assert store.set_start_location(stops[3].address) is True

    assert _addresses(store) == [stops[3].address, stops[0].address, stops[1].address, stops[2].address]
    assert store.start_location == stops[3].address
    assert store.current_stop_index == 0
    assert [event.kind for event in events] == [StoreChange.START_CHANGED]


def test_set_start_location_unknown_address_leaves_state(stops, caplog):
    store = WaypointStore()
    store.load(stops)

    with caplog.at_level(logging.ERROR):
        assert store.set_start_location("nowhere") is False

    assert store.start_location == stops[0].address
    assert _addresses(store) == [stop.address for stop in stops]
    assert "not found" in caplog.text


def test_advance_requires_an_available_route(stops):
    store = WaypointStore()
    store.load(stops)

    assert store.advance_current_stop() is False
    assert store.current_stop_index == 0


def test_advance_stops_at_last_index(stops):
    store = WaypointStore()
    store.load(stops)
    store.set_route_available(True)

    for _ in range(len(stops)):
        store.advance_current_stop()

    assert store.current_stop_index == len(stops) - 1
    assert store.can_advance is False
    assert store.advance_current_stop() is False
    assert store.current_stop_index == len(stops) - 1


def test_apply_optimized_order_requires_same_stops(stops):
    store = WaypointStore()
    store.load(stops[:3])

    with pytest.raises(ValueError):
        store.apply_optimized_order([stops[0], stops[1], stops[3]])


def test_apply_optimized_order_only_notifies_on_change(stops):
    store = WaypointStore()
    store.load(stops)
    events = []
    store.subscribe(events.append)

    store.apply_optimized_order(stops)
    store.apply_optimized_order([stops[0], stops[2], stops[1], stops[3]])

    assert [event.kind for event in events] == [StoreChange.OPTIMIZED]
    assert _addresses(store) == [stops[0].address, stops[2].address, stops[1].address, stops[3].address]


def test_unsubscribe_stops_notifications(stops):
    store = WaypointStore()
    events = []
    unsubscribe = store.subscribe(events.append)

    unsubscribe()
    store.load(stops)

    assert events == []


def test_current_stop_index_stays_in_bounds_for_random_operations(stops):
    rng = random.Random(1234)
    store = WaypointStore()

    for _ in range(500):
        operation = rng.choice(["load", "delete", "start", "advance", "route"])
        if operation == "load":
            store.load(rng.sample(stops, rng.randint(0, len(stops))))
        elif operation == "delete":
            store.delete(rng.choice(stops).address)
        elif operation == "start":
            store.set_start_location(rng.choice(stops).address)
        elif operation == "advance":
            store.advance_current_stop()
        else:
            store.set_route_available(rng.random() < 0.8)

        length = len(store.waypoints)
        if length == 0:
            assert store.current_stop_index == 0
        else:
            assert 0 <= store.current_stop_index <= length - 1
