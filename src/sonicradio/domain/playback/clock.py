"""
Elapsed-play-time tracking for engines that do not report position.
"""

import threading
import time
from typing import Callable, Optional


class PlaybackClock:
    """Accumulates running time across pause/resume cycles.

    Two fields, one lock: `_played` (seconds accumulated before the current
    run, None until the first pause) and `_started_at` (monotonic start of the
    current run, None while paused).
    """

    def __init__(self, now: Callable[[], float] = time.monotonic):
        self._now = now
        self._lock = threading.Lock()
        self._played: Optional[float] = None
        self._started_at: Optional[float] = None

    def reset(self) -> None:
        """Clear accumulated time and start running from now."""
        with self._lock:
            self._played = None
            self._started_at = self._now()

    def pause(self) -> None:
        """Fold the current run into the accumulator and stop running."""
        with self._lock:
            if self._started_at is None:
                return
            run = self._now() - self._started_at
            self._played = run if self._played is None else self._played + run
            self._started_at = None

    def resume(self) -> None:
        with self._lock:
            self._started_at = self._now()

    def elapsed(self) -> int:
        """Whole seconds played so far, never negative."""
        with self._lock:
            total = self._played or 0.0
            if self._started_at is not None:
                total += self._now() - self._started_at
        return max(0, int(total))

    @property
    def running(self) -> bool:
        with self._lock:
            return self._started_at is not None
