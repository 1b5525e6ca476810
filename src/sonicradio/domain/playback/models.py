"""
Playback data types shared by both engine backends.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import PlayerError


class EngineType(str, Enum):
    """Supported external playback engines."""

    MPV = "mpv"
    FFPLAY = "ffplay"


@dataclass(frozen=True)
class Metadata:
    """Snapshot returned by every metadata poll.

    `error` set without a usable title means the engine hit a stream fault
    (or the poll itself failed); callers decide whether to stop playback.
    """

    title: str = ""
    playback_time_seconds: Optional[int] = None
    error: Optional[PlayerError] = None

    @property
    def is_fault(self) -> bool:
        return self.error is not None


def clamp_volume(value: int) -> int:
    """Clamp volume to 0-100."""
    return max(0, min(100, int(value)))


def format_time(seconds: Optional[float]) -> str:
    """Format time in seconds to MM:SS (or H:MM:SS for long sessions)."""
    if seconds is None or seconds < 0:
        return "00:00"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
