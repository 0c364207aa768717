from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from smartcane.locations.models import LOCATION_CATEGORIES
from smartcane.locations.store import LOCATIONS_KEY, ROUTES_KEY, LocationError, SavedPlaces
from smartcane.storage.kv import JsonFileKeyValueStore, MemoryKeyValueStore


class _Clock:
    """Each call is one minute later than the previous one."""

    def __init__(self) -> None:
        self.now = datetime(2025, 10, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def places(kv) -> SavedPlaces:
    return SavedPlaces(kv, clock=_Clock())


def test_categories_match_mobile_app() -> None:
    assert LOCATION_CATEGORIES == ["Home", "Work", "School", "Favorite", "Other"]


def test_add_and_list_newest_first(places, kv) -> None:
    home = places.add_location(" Home ", 43.65, -79.38, address="1 Main St", category="Home")
    cafe = places.add_location("Café Rio", 43.66, -79.39, category="Favorite", notes="quiet corner")

    assert home.name == "Home"
    assert [loc.id for loc in places.locations()] == [cafe.id, home.id]
    assert places.get_location(home.id) == home
    assert len(json.loads(kv.get(LOCATIONS_KEY))) == 2


def test_add_rejects_invalid_data(places) -> None:
    with pytest.raises(LocationError):
        places.add_location("   ", 0, 0)
    with pytest.raises(LocationError):
        places.add_location("Moon", 91, 0)
    with pytest.raises(LocationError):
        places.add_location("Gym", 0, 0, category="Gym")
    assert places.locations() == []


def test_update_keeps_coordinates_and_date(places) -> None:
    loc = places.add_location("Office", 1.0, 2.0, category="Work")

    updated = places.update_location(loc.id, name="New office", notes=" 3rd floor ")

    assert (updated.name, updated.notes, updated.category) == ("New office", "3rd floor", "Work")
    assert (updated.latitude, updated.longitude, updated.date_added) == (1.0, 2.0, loc.date_added)
    assert places.get_location(loc.id) == updated


def test_update_unknown_or_invalid(places) -> None:
    loc = places.add_location("Office", 1.0, 2.0)
    with pytest.raises(LocationError, match="Unknown saved location"):
        places.update_location(uuid4(), name="x")
    with pytest.raises(LocationError):
        places.update_location(loc.id, category="Nowhere")
    assert places.get_location(loc.id).category == "Other"


def test_search_is_case_and_accent_insensitive(places) -> None:
    cafe = places.add_location("Café Rio", 0, 0)
    park = places.add_location("Park", 0, 0, address="12 Cafe Lane")
    places.add_location("Library", 0, 0, notes="Closed Sundays")

    assert [loc.id for loc in places.search_locations("CAFE")] == [park.id, cafe.id]
    assert [loc.name for loc in places.search_locations("sunday")] == ["Library"]
    assert len(places.search_locations("  ")) == 3


def test_filter_by_category(places) -> None:
    places.add_location("Home", 0, 0, category="Home")
    places.add_location("School", 0, 0, category="School")

    assert [loc.name for loc in places.filter_locations("School")] == ["School"]
    assert places.filter_locations("Work") == []
    assert len(places.filter_locations(None)) == 2


def test_routes_crud_and_search(places, kv) -> None:
    home = places.add_location("Home", 0, 0, category="Home")
    work = places.add_location("Work", 0, 0, category="Work")

    route = places.add_route("Commute", home.id, work.id, transport_mode="Public Transport", notes="bus 7")

    assert route.destination_id == work.id
    assert (route.route_type, route.transport_mode) == ("Daily", "Public Transport")
    assert [r.id for r in places.search_routes("BUS")] == [route.id]
    assert len(json.loads(kv.get(ROUTES_KEY))) == 1

    updated = places.update_route(route.id, route_type="Work", waypoint_ids=[home.id])
    assert (updated.route_type, updated.waypoint_ids) == ("Work", [home.id])
    assert updated.date_created == route.date_created

    assert places.delete_route(route.id) is True
    assert places.delete_route(route.id) is False
    assert places.routes() == []


def test_route_requires_known_locations(places) -> None:
    home = places.add_location("Home", 0, 0)
    with pytest.raises(LocationError, match="Unknown saved location"):
        places.add_route("Nowhere", home.id, uuid4())
    with pytest.raises(LocationError):
        places.add_route("Home loop", home.id, home.id, transport_mode="Teleport")
    assert places.routes() == []


def test_deleting_location_cleans_up_routes(places) -> None:
    home = places.add_location("Home", 0, 0)
    work = places.add_location("Work", 0, 0)
    shop = places.add_location("Shop", 0, 0)
    via_shop = places.add_route("Via shop", home.id, work.id, waypoint_ids=[shop.id])
    to_shop = places.add_route("To shop", home.id, shop.id)

    assert places.delete_location(shop.id) is True
    assert places.delete_location(shop.id) is False

    routes = places.routes()
    assert [r.id for r in routes] == [via_shop.id]
    assert routes[0].waypoint_ids == []
    assert to_shop.id not in {r.id for r in routes}


def test_unreadable_collection_reads_as_empty() -> None:
    kv = MemoryKeyValueStore({LOCATIONS_KEY: "not json", ROUTES_KEY: '[{"name": 1}]'})
    places = SavedPlaces(kv)

    assert places.locations() == []
    assert places.routes() == []


def test_persists_across_instances(tmp_path) -> None:
    path = tmp_path / "store.json"
    first = SavedPlaces(JsonFileKeyValueStore(path))
    loc = first.add_location("Home", 43.0, -79.0, category="Home")

    second = SavedPlaces(JsonFileKeyValueStore(path))

    assert second.locations() == [loc]
