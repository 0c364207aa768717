from __future__ import annotations

import logging
from typing import List, Optional

from smartcane.obstacles.announcements import ObstacleAnnouncer
from smartcane.obstacles.models import ObstacleLog
from smartcane.obstacles.repository import ObstacleLogRepository

logger = logging.getLogger(__name__)


class ObstacleLogService:
    """
    Keeps the latest obstacle logs and reads out new ones.

    Remote failures are logged and leave `logs` as it was; the next refresh
    tries again.
    """

    def __init__(self, repository: ObstacleLogRepository, announcer: ObstacleAnnouncer) -> None:
        self._repository = repository
        self._announcer = announcer
        self.logs: List[ObstacleLog] = []
        self.device_filter: Optional[str] = None

    async def refresh(self, device_id: Optional[str] = None) -> List[ObstacleLog]:
        """Fetch logs and announce unseen ones. Returns the newly announced logs."""
        device_id = (device_id or "").strip() or None
        self.device_filter = device_id
        try:
            logs = await self._repository.fetch(device_id)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Error fetching obstacle logs: {e}")
            return []

        announced = self._announcer.observe(logs, device_filter=device_id)
        self.logs = logs
        logger.info("Loaded obstacle logs: %d (%d new)", len(logs), len(announced))
        return announced

    async def save(self, log: ObstacleLog) -> bool:
        """Upload `log`, then refresh with the current device filter."""
        try:
            await self._repository.insert(log)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Obstacle log insert failed: {e}")
            return False
        await self.refresh(self.device_filter)
        return True
