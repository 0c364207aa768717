from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Protocol

from supabase.client import Client

from smartcane.obstacles.models import ObstacleLog, ObstacleLogInsert

TABLE = "obstacle_logs"


class ObstacleLogRepository(Protocol):
    """Remote storage of obstacle logs."""

    async def fetch(self, device_id: Optional[str] = None) -> List[ObstacleLog]:
        """
        Fetch logs, optionally only those reported by `device_id`.

        Raises:
            Exception on transport or API errors
        """
        ...

    async def insert(self, log: ObstacleLog) -> None:
        """Upload a new log."""
        ...


class SupabaseObstacleLogRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def _fetch_rows(self, device_id: Optional[str]) -> List[Dict[str, Any]]:
        query = self._client.table(TABLE).select("*")
        if device_id:
            query = query.eq("device_id", device_id)
        return list(query.execute().data or [])

    async def fetch(self, device_id: Optional[str] = None) -> List[ObstacleLog]:
        rows = await asyncio.to_thread(self._fetch_rows, device_id)
        return [ObstacleLog.model_validate(row) for row in rows]

    async def insert(self, log: ObstacleLog) -> None:
        payload = ObstacleLogInsert.from_log(log).model_dump(mode="json")
        await asyncio.to_thread(lambda: self._client.table(TABLE).insert(payload).execute())
