"""
Single-instance guard.

Two sonicradio processes would fight over the same mpv socket path and the
config file, so main() takes an exclusive lock on a file in the data dir once
at startup and holds it until exit.
"""

import fcntl
import os
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import get_data_dir


class AlreadyRunning(RuntimeError):
    """Another instance holds the lock."""


def get_lock_path() -> Path:
    return get_data_dir() / "sonicradio.lock"


class InstanceLock:
    """Exclusive, non-blocking lock on `path` (released on release() or exit)."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path or get_lock_path()
        self._fd: Optional[int] = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """Take the lock.

        Raises:
            AlreadyRunning: another process holds it
        """
        if self._fd is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            os.close(fd)
            raise AlreadyRunning(f"sonicradio is already running (lock: {self.path})") from e

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        self._fd = fd
        logger.debug(f"Acquired instance lock: {self.path}")

    def release(self) -> None:
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)
        logger.debug(f"Released instance lock: {self.path}")

    def __enter__(self) -> "InstanceLock":
        self.acquire()
        return self

    def __exit__(self, *exc) -> None:
        self.release()
