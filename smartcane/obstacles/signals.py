"""
Raw cane sensor messages.

The cane firmware sends short text frames over its serial/BLE link:
`F:<cm>`, `L:<cm>`, `R:<cm>` (obstacle distance ahead, left, right),
`STOP`, `CLEAR`, `BAT:<percent>` and `ERR:<message>`. Each frame maps to one
warning sentence suitable for voice feedback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional

from smartcane.obstacles.announcements import VoiceFeedback

logger = logging.getLogger(__name__)

SignalKind = Literal["front", "left", "right", "stop", "clear", "battery", "error", "unknown"]

UNKNOWN_SIGNAL_TEXT = "Unknown signal received."

_NUMERIC_PREFIXES: Dict[str, SignalKind] = {
    "F": "front",
    "L": "left",
    "R": "right",
    "BAT": "battery",
}


@dataclass(frozen=True)
class SensorSignal:
    kind: SignalKind
    value: Optional[int] = None
    message: Optional[str] = None


def _fields(raw: str) -> List[str]:
    # Empty fields are dropped, so "F::20" reads as "F:20".
    return [part for part in raw.split(":") if part]


def parse_signal(raw: str) -> SensorSignal:
    """Parse one frame; anything malformed is an `unknown` signal."""
    frame = raw.strip()
    if frame == "STOP":
        return SensorSignal("stop")
    if frame == "CLEAR":
        return SensorSignal("clear")

    prefix, sep, _ = frame.partition(":")
    if not sep:
        return SensorSignal("unknown")
    parts = _fields(frame)
    if len(parts) < 2:
        return SensorSignal("unknown")

    if prefix == "ERR":
        return SensorSignal("error", message=parts[1])
    kind = _NUMERIC_PREFIXES.get(prefix)
    if kind is None:
        return SensorSignal("unknown")
    try:
        return SensorSignal(kind, value=int(parts[1]))
    except ValueError:
        return SensorSignal("unknown")


def warning_text(signal: SensorSignal) -> str:
    if signal.kind == "front":
        return f"There is an obstacle {signal.value} cm in front of you."
    if signal.kind == "left":
        return f"There is an obstacle {signal.value} cm on your left, please move right."
    if signal.kind == "right":
        return f"There is an obstacle {signal.value} cm on your right, please move left."
    if signal.kind == "stop":
        return "Stop immediately."
    if signal.kind == "clear":
        return "The path is clear."
    if signal.kind == "battery":
        return f"Battery level is {signal.value}%."
    if signal.kind == "error":
        return f"Sensor error detected: {signal.message}"
    return UNKNOWN_SIGNAL_TEXT


def describe_signal(raw: str) -> str:
    return warning_text(parse_signal(raw))


class SignalAnnouncer:
    """Reads cane frames out through voice feedback."""

    def __init__(self, voice: VoiceFeedback) -> None:
        self.voice = voice

    def receive(self, raw: str) -> str:
        """Speak the warning for `raw` (subject to settings) and return it."""
        signal = parse_signal(raw)
        if signal.kind == "unknown":
            logger.warning("Unrecognized sensor frame: %r", raw)
        text = warning_text(signal)
        self.voice.speak(text)
        return text
