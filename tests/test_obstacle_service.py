from __future__ import annotations

from typing import List, Optional
from unittest.mock import MagicMock
from uuid import UUID

import pytest

from smartcane.obstacles.announcements import ObstacleAnnouncer, VoiceFeedback
from smartcane.obstacles.models import ObstacleLog
from smartcane.obstacles.repository import SupabaseObstacleLogRepository
from smartcane.obstacles.service import ObstacleLogService
from smartcane.settings import AppSettings


class FakeRepository:
    def __init__(self) -> None:
        self.rows: List[ObstacleLog] = []
        self.fail = False
        self.fetches: List[Optional[str]] = []

    async def fetch(self, device_id: Optional[str] = None) -> List[ObstacleLog]:
        self.fetches.append(device_id)
        if self.fail:
            raise RuntimeError("offline")
        return [r for r in self.rows if device_id is None or r.device_id == device_id]

    async def insert(self, log: ObstacleLog) -> None:
        if self.fail:
            raise RuntimeError("offline")
        self.rows.append(log.model_copy(update={"id": UUID(int=len(self.rows) + 1)}))


class RecordingSpeaker:
    def __init__(self) -> None:
        self.spoken: List[str] = []

    def speak(self, text: str) -> None:
        self.spoken.append(text)


@pytest.fixture
def speaker():
    return RecordingSpeaker()


@pytest.fixture
def repo():
    return FakeRepository()


@pytest.fixture
def service(repo, speaker):
    return ObstacleLogService(repo, ObstacleAnnouncer(VoiceFeedback(speaker, AppSettings())))


@pytest.mark.asyncio
async def test_save_then_refresh_announces_new_log(service, repo, speaker) -> None:
    repo.rows.append(ObstacleLog(id=UUID(int=99), obstacle_type="wall", device_id="cane-001"))
    await service.refresh()
    assert speaker.spoken == []

    ok = await service.save(ObstacleLog(obstacle_type="stairs", device_id="cane-001", distance_cm=80))

    assert ok is True
    assert len(service.logs) == 2
    assert speaker.spoken == ["New obstacle detected: Stairs, 80 centimeters away, reported by device cane-001"]


@pytest.mark.asyncio
async def test_refresh_failure_keeps_previous_logs(service, repo) -> None:
    repo.rows.append(ObstacleLog(id=UUID(int=1), obstacle_type="wall"))
    await service.refresh()
    repo.fail = True

    assert await service.refresh() == []
    assert len(service.logs) == 1


@pytest.mark.asyncio
async def test_save_failure_returns_false(service, repo) -> None:
    repo.fail = True
    assert await service.save(ObstacleLog(obstacle_type="wall")) is False


@pytest.mark.asyncio
async def test_save_refreshes_with_current_device_filter(service, repo) -> None:
    await service.refresh(" cane-002 ")
    await service.save(ObstacleLog(obstacle_type="wall", device_id="cane-002"))
    assert repo.fetches == ["cane-002", "cane-002"]


@pytest.mark.asyncio
async def test_supabase_repository_queries_table() -> None:
    client = MagicMock()
    query = client.table.return_value.select.return_value
    query.eq.return_value.execute.return_value.data = [
        {"id": str(UUID(int=1)), "obstacle_type": "wall", "device_id": "cane-001",
         "created_at": "2025-10-10T12:00:00+00:00", "unused_column": 1},
    ]
    repo = SupabaseObstacleLogRepository(client)

    logs = await repo.fetch("cane-001")

    client.table.assert_called_with("obstacle_logs")
    query.eq.assert_called_once_with("device_id", "cane-001")
    assert logs[0].obstacle_type == "wall"
    assert logs[0].created_at is not None


@pytest.mark.asyncio
async def test_supabase_repository_insert_defaults_device() -> None:
    client = MagicMock()
    repo = SupabaseObstacleLogRepository(client)

    await repo.insert(ObstacleLog(obstacle_type="curb", distance_cm=30, severity_level=1))

    payload = client.table.return_value.insert.call_args.args[0]
    assert payload["device_id"] == "cane-001"
    assert payload["obstacle_type"] == "curb"
    assert "id" not in payload
