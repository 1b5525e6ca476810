"""
Background now-playing poller.

Calls Player.metadata() on a fixed interval and hands each snapshot to a
callback. A stream fault optionally stops playback so the engine does not sit
on a dead URL.
"""

import threading
from typing import Callable, Optional

from loguru import logger

from sonicradio.domain.playback import Metadata, Player, PlayerError, StreamFault


class MetadataPoller:
    """Daemon thread that refreshes now-playing state once per interval."""

    def __init__(
        self,
        player: Player,
        on_update: Callable[[Metadata], None],
        interval: float = 1.0,
        stop_on_fault: bool = True,
    ):
        self.player = player
        self.on_update = on_update
        self.interval = interval
        self.stop_on_fault = stop_on_fault
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last: Optional[Metadata] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="metadata-poller", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout if timeout is not None else self.interval * 2)
            self._thread = None

    def poll_once(self) -> Metadata:
        """Take one snapshot, publish it, and stop playback on a stream fault."""
        metadata = self.player.metadata()
        self.last = metadata
        self.on_update(metadata)

        if self.stop_on_fault and isinstance(metadata.error, StreamFault):
            logger.warning(f"Stream fault, stopping playback: {metadata.error}")
            try:
                self.player.stop()
            except PlayerError as e:
                logger.error(f"Failed to stop after stream fault: {e}")
        return metadata

    def _run(self) -> None:
        logger.debug(f"Metadata poller started (interval={self.interval}s)")
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception:
                # Keep polling; one bad callback must not kill the refresh loop
                logger.exception("Metadata poll failed")
            self._stop.wait(self.interval)
        logger.debug("Metadata poller stopped")
