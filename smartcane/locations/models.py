from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, get_args
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

LocationCategory = Literal["Home", "Work", "School", "Favorite", "Other"]
RouteType = Literal["Daily", "Work", "Shopping", "Recreation", "Emergency", "Custom"]
TransportMode = Literal["Walking", "Wheelchair", "Public Transport", "Taxi", "Car"]

LOCATION_CATEGORIES: List[str] = list(get_args(LocationCategory))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class SavedLocation(BaseModelStrict):
    id: UUID = Field(default_factory=uuid4)
    name: str = Field(min_length=1)
    address: str = ""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    category: LocationCategory = "Other"
    notes: str = ""
    date_added: datetime = Field(default_factory=utc_now)


class SavedRoute(BaseModelStrict):
    """A named trip between two saved locations, optionally via waypoints."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(min_length=1)
    origin_id: UUID
    destination_id: UUID
    waypoint_ids: List[UUID] = Field(default_factory=list)
    route_type: RouteType = "Daily"
    transport_mode: TransportMode = "Walking"
    notes: str = ""
    date_created: datetime = Field(default_factory=utc_now)
