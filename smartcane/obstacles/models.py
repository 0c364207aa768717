from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DEVICE_ID = "cane-001"


class ObstacleLog(BaseModel):
    """One obstacle detection event, as stored in the `obstacle_logs` table."""

    # Server rows carry extra columns we don't use.
    model_config = ConfigDict(extra="ignore")

    id: Optional[UUID] = None
    device_id: Optional[str] = None
    user_id: Optional[UUID] = None
    obstacle_type: str
    distance_cm: Optional[int] = None
    confidence_score: Optional[float] = None
    sensor_type: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timestamp: Optional[datetime] = None
    user_verified: Optional[bool] = None
    severity_level: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def display_date(self) -> Optional[datetime]:
        return self.created_at or self.timestamp

    @property
    def device_display_name(self) -> str:
        return self.device_id or "Unknown Device"


class ObstacleLogInsert(BaseModel):
    """Columns sent when uploading a new log; the server fills id and created_at."""

    model_config = ConfigDict(extra="forbid")

    device_id: str = Field(default=DEFAULT_DEVICE_ID)
    obstacle_type: str
    distance_cm: Optional[int] = None
    confidence_score: Optional[float] = None
    sensor_type: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    severity_level: Optional[int] = None
    user_id: Optional[UUID] = None

    @classmethod
    def from_log(cls, log: ObstacleLog) -> "ObstacleLogInsert":
        return cls(
            device_id=log.device_id or DEFAULT_DEVICE_ID,
            obstacle_type=log.obstacle_type,
            distance_cm=log.distance_cm,
            confidence_score=log.confidence_score,
            sensor_type=log.sensor_type,
            latitude=log.latitude,
            longitude=log.longitude,
            severity_level=log.severity_level,
            user_id=log.user_id,
        )
