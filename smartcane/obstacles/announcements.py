from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, Set

from smartcane.obstacles.models import ObstacleLog
from smartcane.settings import AppSettings

logger = logging.getLogger(__name__)


class Speaker(Protocol):
    """Text-to-speech sink (platform synthesizer, screen reader bridge, stdout...)."""

    def speak(self, text: str) -> None: ...


class VoiceFeedback:
    """Speaks through `speaker` unless the user turned voice feedback off."""

    def __init__(self, speaker: Speaker, settings: AppSettings) -> None:
        self.speaker = speaker
        self.settings = settings

    def speak(self, text: str) -> bool:
        if not self.settings.voice_feedback_enabled:
            logger.debug("Voice feedback disabled; not speaking: %s", text)
            return False
        self.speaker.speak(text)
        return True


def severity_description(severity: int) -> str:
    if severity <= 0:
        return "unknown severity"
    if severity == 1:
        return "low severity"
    if severity == 2:
        return "medium severity"
    if severity == 3:
        return "high severity"
    return f"severity level {severity}"


def announcement_text(log: ObstacleLog) -> str:
    phrases = [f"New obstacle detected: {log.obstacle_type.title()}"]
    if log.distance_cm is not None:
        phrases.append(f"{log.distance_cm} centimeters away")
    if log.severity_level is not None:
        phrases.append(severity_description(log.severity_level))
    if log.device_id:
        phrases.append(f"reported by device {log.device_id}")
    return ", ".join(phrases)


def announcement_key(log: ObstacleLog) -> str:
    """Stable identity of a log for "already announced" tracking."""
    if log.id is not None:
        return f"id:{log.id}"
    parts = [f"type:{log.obstacle_type.lower()}"]
    if log.device_id:
        parts.append(f"device:{log.device_id.lower()}")
    if log.created_at is not None:
        parts.append(f"created:{log.created_at.timestamp()}")
    elif log.timestamp is not None:
        parts.append(f"timestamp:{log.timestamp.timestamp()}")
    elif log.distance_cm is not None:
        parts.append(f"distance:{log.distance_cm}")
    if log.severity_level is not None:
        parts.append(f"severity:{log.severity_level}")
    return "|".join(parts)


class ObstacleAnnouncer:
    """
    Announces logs the user has not heard yet.

    The first batch after (re)setting only primes the tracker: logs that were
    already on the server when the app started are not read out.
    """

    def __init__(self, voice: VoiceFeedback) -> None:
        self.voice = voice
        self._announced: Set[str] = set()
        self._primed = False
        self._device_filter: Optional[str] = None

    def reset(self, device_filter: Optional[str] = None) -> None:
        self._announced.clear()
        self._primed = False
        self._device_filter = device_filter

    def observe(self, logs: Iterable[ObstacleLog], device_filter: Optional[str] = None) -> List[ObstacleLog]:
        """Record a fetched batch and announce the new ones. Returns the announced logs."""
        if device_filter != self._device_filter:
            self.reset(device_filter)

        batch = list(logs)
        keys = [announcement_key(log) for log in batch]
        fresh: List[ObstacleLog] = []
        if self._primed:
            fresh = [log for log, key in zip(batch, keys) if key not in self._announced]
        else:
            self._primed = True
        self._announced.update(keys)

        for log in fresh:
            self.voice.speak(announcement_text(log))
        return fresh
