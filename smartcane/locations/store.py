"""
Saved locations and routes persisted in the key-value store.

Each collection is one JSON array under its own key. Listings are newest
first. Search is case- and accent-insensitive substring matching.
"""

from __future__ import annotations

import logging
import unicodedata
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar
from uuid import UUID

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from smartcane.locations.models import SavedLocation, SavedRoute, utc_now
from smartcane.storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

LOCATIONS_KEY = "savedLocations"
ROUTES_KEY = "savedRoutes"

M = TypeVar("M", bound=BaseModel)

_LOCATIONS = TypeAdapter(List[SavedLocation])
_ROUTES = TypeAdapter(List[SavedRoute])


class LocationError(ValueError):
    """Invalid location/route data or a reference to one that does not exist."""


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def _matches(query: str, fields: Iterable[str]) -> bool:
    needle = _fold(query)
    return any(needle in _fold(value) for value in fields)


def _validated(model: M, changes: Dict[str, Any]) -> M:
    try:
        return type(model).model_validate({**model.model_dump(), **changes})
    except PydanticValidationError as e:
        raise LocationError(str(e)) from e


class SavedPlaces:
    def __init__(self, store: KeyValueStore, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._store = store
        self._clock = clock

    # --- persistence ------------------------------------------------------

    def _load(self, key: str, adapter: TypeAdapter) -> List[Any]:
        raw = self._store.get(key)
        if not raw:
            return []
        try:
            return adapter.validate_json(raw)
        except PydanticValidationError as e:
            logger.warning("Ignoring unreadable %s: %s", key, e)
            return []

    def _save_locations(self, items: List[SavedLocation]) -> None:
        self._store.set(LOCATIONS_KEY, _LOCATIONS.dump_json(items).decode("utf-8"))

    def _save_routes(self, items: List[SavedRoute]) -> None:
        self._store.set(ROUTES_KEY, _ROUTES.dump_json(items).decode("utf-8"))

    def _all_locations(self) -> List[SavedLocation]:
        return self._load(LOCATIONS_KEY, _LOCATIONS)

    def _all_routes(self) -> List[SavedRoute]:
        return self._load(ROUTES_KEY, _ROUTES)

    # --- locations --------------------------------------------------------

    def locations(self) -> List[SavedLocation]:
        return sorted(self._all_locations(), key=lambda loc: loc.date_added, reverse=True)

    def get_location(self, location_id: UUID) -> SavedLocation:
        for loc in self._all_locations():
            if loc.id == location_id:
                return loc
        raise LocationError(f"Unknown saved location: {location_id}")

    def add_location(
        self,
        name: str,
        latitude: float,
        longitude: float,
        *,
        address: str = "",
        category: str = "Other",
        notes: str = "",
    ) -> SavedLocation:
        try:
            loc = SavedLocation(
                name=name.strip(),
                address=address.strip(),
                latitude=latitude,
                longitude=longitude,
                category=category,  # type: ignore[arg-type]
                notes=notes.strip(),
                date_added=self._clock(),
            )
        except PydanticValidationError as e:
            raise LocationError(str(e)) from e
        self._save_locations(self._all_locations() + [loc])
        logger.info("Added saved location %s", loc.name)
        return loc

    def update_location(
        self,
        location_id: UUID,
        *,
        name: Optional[str] = None,
        address: Optional[str] = None,
        category: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> SavedLocation:
        """Change the descriptive fields; coordinates and date_added are kept."""
        changes: Dict[str, Any] = {}
        if name is not None:
            changes["name"] = name.strip()
        if address is not None:
            changes["address"] = address.strip()
        if category is not None:
            changes["category"] = category
        if notes is not None:
            changes["notes"] = notes.strip()

        items = self._all_locations()
        for i, loc in enumerate(items):
            if loc.id == location_id:
                items[i] = _validated(loc, changes)
                self._save_locations(items)
                return items[i]
        raise LocationError(f"Unknown saved location: {location_id}")

    def delete_location(self, location_id: UUID) -> bool:
        """
        Delete a location. Routes that start or end there are deleted too; it
        is dropped from the waypoints of the others.
        """
        items = self._all_locations()
        kept = [loc for loc in items if loc.id != location_id]
        if len(kept) == len(items):
            return False
        self._save_locations(kept)

        routes = self._all_routes()
        remaining = [
            r.model_copy(update={"waypoint_ids": [w for w in r.waypoint_ids if w != location_id]})
            for r in routes
            if location_id not in (r.origin_id, r.destination_id)
        ]
        if remaining != routes:
            self._save_routes(remaining)
        logger.info("Deleted saved location %s", location_id)
        return True

    def search_locations(self, query: str) -> List[SavedLocation]:
        """Match name, address or notes. An empty query lists everything."""
        query = query.strip()
        if not query:
            return self.locations()
        return [loc for loc in self.locations() if _matches(query, (loc.name, loc.address, loc.notes))]

    def filter_locations(self, category: Optional[str] = None) -> List[SavedLocation]:
        if category is None:
            return self.locations()
        return [loc for loc in self.locations() if loc.category == category]

    # --- routes -----------------------------------------------------------

    def routes(self) -> List[SavedRoute]:
        return sorted(self._all_routes(), key=lambda r: r.date_created, reverse=True)

    def _require_locations(self, ids: Sequence[UUID]) -> None:
        known = {loc.id for loc in self._all_locations()}
        missing = [str(i) for i in ids if i not in known]
        if missing:
            raise LocationError(f"Unknown saved location(s): {', '.join(missing)}")

    def add_route(
        self,
        name: str,
        origin_id: UUID,
        destination_id: UUID,
        *,
        route_type: str = "Daily",
        transport_mode: str = "Walking",
        notes: str = "",
        waypoint_ids: Sequence[UUID] = (),
    ) -> SavedRoute:
        self._require_locations([origin_id, destination_id, *waypoint_ids])
        try:
            route = SavedRoute(
                name=name.strip(),
                origin_id=origin_id,
                destination_id=destination_id,
                waypoint_ids=list(waypoint_ids),
                route_type=route_type,  # type: ignore[arg-type]
                transport_mode=transport_mode,  # type: ignore[arg-type]
                notes=notes.strip(),
                date_created=self._clock(),
            )
        except PydanticValidationError as e:
            raise LocationError(str(e)) from e
        self._save_routes(self._all_routes() + [route])
        logger.info("Added saved route %s", route.name)
        return route

    def update_route(
        self,
        route_id: UUID,
        *,
        name: Optional[str] = None,
        route_type: Optional[str] = None,
        transport_mode: Optional[str] = None,
        notes: Optional[str] = None,
        waypoint_ids: Optional[Sequence[UUID]] = None,
    ) -> SavedRoute:
        """Waypoints, when given, replace the existing ones."""
        changes: Dict[str, Any] = {}
        if name is not None:
            changes["name"] = name.strip()
        if route_type is not None:
            changes["route_type"] = route_type
        if transport_mode is not None:
            changes["transport_mode"] = transport_mode
        if notes is not None:
            changes["notes"] = notes.strip()
        if waypoint_ids is not None:
            self._require_locations(waypoint_ids)
            changes["waypoint_ids"] = list(waypoint_ids)

        items = self._all_routes()
        for i, route in enumerate(items):
            if route.id == route_id:
                items[i] = _validated(route, changes)
                self._save_routes(items)
                return items[i]
        raise LocationError(f"Unknown saved route: {route_id}")

    def delete_route(self, route_id: UUID) -> bool:
        items = self._all_routes()
        kept = [r for r in items if r.id != route_id]
        if len(kept) == len(items):
            return False
        self._save_routes(kept)
        return True

    def search_routes(self, query: str) -> List[SavedRoute]:
        """Match name or notes. An empty query lists everything."""
        query = query.strip()
        if not query:
            return self.routes()
        return [r for r in self.routes() if _matches(query, (r.name, r.notes))]
