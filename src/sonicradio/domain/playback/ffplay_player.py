"""
ffplay backend: one ffplay process per running stream.

ffplay has no control channel. Pausing kills the process and resuming relaunches
it with the same URL, so elapsed time is kept by a PlaybackClock and the
title/fault state is scraped from the process's stderr.
"""

import threading
from typing import Callable, List, Optional

from loguru import logger

from .clock import PlaybackClock
from .errors import IpcError, PlayerClosed, PlayerError
from .models import EngineType, Metadata, clamp_volume
from .process import EngineProcess, launch
from .scrape import scan_output

BASE_ARGS = ["-hide_banner", "-nodisp", "-loglevel", "verbose", "-autoexit"]


def build_args(url: str, volume: int) -> List[str]:
    """ffplay argument vector; volume is fixed for the life of the process."""
    return [*BASE_ARGS, "-volume", str(clamp_volume(volume)), url]


class FFPlayPlayer:
    """Player that drives ffplay subprocesses and scrapes their diagnostics."""

    engine = EngineType.FFPLAY

    def __init__(
        self,
        volume: int = 50,
        executable: str = "ffplay",
        stop_timeout: float = 2.0,
        poll_timeout: float = 1.0,
        clock: Optional[PlaybackClock] = None,
        launcher: Callable[..., EngineProcess] = launch,
    ):
        self.executable = executable
        self.stop_timeout = stop_timeout
        self.poll_timeout = poll_timeout
        self._launch = launcher
        self._clock = clock or PlaybackClock()

        self._lock = threading.RLock()
        self._volume = clamp_volume(volume)
        self._process: Optional[EngineProcess] = None
        self._url: Optional[str] = None
        self._paused = False
        self._closed = False

    @property
    def volume(self) -> int:
        return self._volume

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.is_running()

    def _check_open(self) -> None:
        if self._closed:
            raise PlayerClosed("ffplay player is closed")

    def _start(self, url: str) -> None:
        """Replace any running process with a fresh one for `url`. Caller holds the lock."""
        self._stop_process()
        try:
            self._process = self._launch(
                self.executable, build_args(url, self._volume), capture_stderr=True
            )
        except PlayerError:
            # Leave the player idle rather than half-started
            self._url = None
            self._paused = False
            self._clock.pause()
            raise
        self._url = url

    def _stop_process(self) -> None:
        if self._process is None:
            logger.debug("no current station playing")
            return
        process, self._process = self._process, None
        process.stop(timeout=self.stop_timeout)

    def play(self, url: str) -> None:
        logger.info(f"ffplay playing url={url}")
        with self._lock:
            self._check_open()
            self._start(url)
            self._paused = False
            self._clock.reset()

    def pause(self, enable: bool) -> None:
        logger.info(f"ffplay pause value={enable}")
        with self._lock:
            self._check_open()
            if enable:
                if self._process is None:
                    return
                self._stop_process()
                self._paused = True
                self._clock.pause()
            elif self._url is not None and self._paused:
                self._start(self._url)
                self._paused = False
                self._clock.resume()

    def set_volume(self, value: int) -> int:
        """Store the volume for the next launch; a running ffplay is not affected."""
        value = clamp_volume(value)
        logger.info(f"ffplay volume value={value}")
        with self._lock:
            self._check_open()
            self._volume = value
        return value

    def stop(self) -> None:
        logger.info("ffplay stopping")
        with self._lock:
            self._check_open()
            self._stop_process()
            if self._url is not None and not self._paused:
                self._clock.pause()
            self._url = None
            self._paused = False

    def elapsed(self) -> int:
        return self._clock.elapsed()

    def metadata(self) -> Metadata:
        """Scan captured stderr for a fault or the latest title."""
        if not self._lock.acquire(timeout=self.poll_timeout):
            return Metadata(error=IpcError("ffplay player busy"))
        try:
            if self._closed:
                return Metadata(error=PlayerClosed("ffplay player is closed"))
            if self._url is None:
                return Metadata()
            if self._process is None:
                # Paused: no process, clock frozen
                return Metadata(playback_time_seconds=self._clock.elapsed())

            result = scan_output(self._process.output())
            if result.fault is not None:
                logger.debug(f"ffplay fault: {result.fault}")
            return Metadata(
                title=result.title,
                playback_time_seconds=self._clock.elapsed(),
                error=result.fault,
            )
        finally:
            self._lock.release()

    def seek(self, offset_seconds: int) -> Optional[Metadata]:
        """ffplay cannot seek a live stream once launched."""
        return None

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._stop_process()
            self._url = None
            self._closed = True
