"""
Engine process launching and teardown.

Engines are started in their own session so stop() can signal the whole
process group; mpv and ffplay do not reliably exit on stream errors.
"""

import os
import shutil
import signal
import subprocess
import threading
from typing import List, Optional

from loguru import logger

from .errors import ExecutableNotFound, ExecutionFailed

# Diagnostic tail kept per process; marker/error lines are always near the end
STDERR_TAIL_BYTES = 64 * 1024

_POSIX = os.name == "posix"


class StderrTail:
    """Thread-safe bounded buffer holding the last bytes an engine wrote to stderr."""

    def __init__(self, limit: int = STDERR_TAIL_BYTES):
        self._limit = limit
        self._data = bytearray()
        self._lock = threading.Lock()

    def feed(self, chunk: bytes) -> None:
        with self._lock:
            self._data += chunk
            overflow = len(self._data) - self._limit
            if overflow > 0:
                del self._data[:overflow]

    def text(self) -> str:
        with self._lock:
            return self._data.decode("utf-8", errors="replace")

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class EngineProcess:
    """A running engine subprocess plus its captured diagnostics."""

    def __init__(
        self,
        process: subprocess.Popen,
        stderr: Optional[StderrTail] = None,
        reader: Optional[threading.Thread] = None,
    ):
        self.process = process
        self.stderr = stderr
        self._reader = reader

    @property
    def pid(self) -> int:
        return self.process.pid

    def is_running(self) -> bool:
        return self.process.poll() is None

    def output(self) -> str:
        """Captured diagnostic text, empty when stderr is not captured."""
        return self.stderr.text() if self.stderr is not None else ""

    def stop(self, timeout: float = 2.0) -> None:
        """Terminate the process group, escalating to SIGKILL after `timeout`."""
        if self.is_running():
            _signal_group(self.process, signal.SIGTERM)
            try:
                self.process.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.warning(f"Engine pid={self.pid} ignored SIGTERM, killing")
                _signal_group(self.process, signal.SIGKILL)
                try:
                    self.process.wait(timeout=timeout)
                except subprocess.TimeoutExpired:
                    logger.error(f"Engine pid={self.pid} did not exit after SIGKILL")
        else:
            # Reap an engine that exited on its own
            self.process.poll()

        if self._reader is not None:
            self._reader.join(timeout=timeout)
        logger.debug(f"Engine pid={self.pid} stopped (returncode={self.process.returncode})")


def _signal_group(process: subprocess.Popen, sig: int) -> None:
    try:
        if _POSIX:
            os.killpg(os.getpgid(process.pid), sig)
        elif sig == signal.SIGTERM:
            process.terminate()
        else:
            process.kill()
    except (ProcessLookupError, PermissionError) as e:
        # Already gone between poll() and the signal
        logger.debug(f"Signal {sig} to pid={process.pid} failed: {e}")


def resolve_executable(name: str) -> str:
    """Resolve an engine binary on PATH (or validate an explicit path)."""
    path = shutil.which(name)
    if path is None:
        raise ExecutableNotFound(name)
    return path


def _pump_stderr(stream, tail: StderrTail) -> None:
    try:
        for chunk in iter(lambda: stream.read1(4096), b""):
            tail.feed(chunk)
    except (OSError, ValueError):
        # Pipe closed underneath us during stop()
        pass
    finally:
        stream.close()


def launch(executable: str, args: List[str], capture_stderr: bool = False) -> EngineProcess:
    """Start `executable` with `args` and return a handle to it.

    Raises:
        ExecutableNotFound: binary missing or not resolvable
        ExecutionFailed: binary found but the OS refused to start it
    """
    path = resolve_executable(executable)
    cmd = [path, *args]
    logger.debug(f"Launching engine: {cmd}")

    try:
        process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE if capture_stderr else subprocess.DEVNULL,
            start_new_session=_POSIX,
        )
    except FileNotFoundError as e:
        raise ExecutableNotFound(executable) from e
    except (subprocess.SubprocessError, OSError) as e:
        logger.error(f"Failed to start {executable}: {e}")
        raise ExecutionFailed(f"failed to start {executable}: {e}") from e

    tail = None
    reader = None
    if capture_stderr:
        tail = StderrTail()
        reader = threading.Thread(
            target=_pump_stderr,
            args=(process.stderr, tail),
            name=f"{os.path.basename(executable)}-stderr-{process.pid}",
            daemon=True,
        )
        reader.start()

    logger.info(f"{executable} started (pid={process.pid})")
    return EngineProcess(process, tail, reader)


def check_executable(executable: str, version_flag: str = "--version") -> bool:
    """Check if an engine binary is available and runnable."""
    try:
        result = subprocess.run(
            [executable, version_flag], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False
