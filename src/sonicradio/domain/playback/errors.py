"""
Error taxonomy for the playback domain.

Control-call failures (start, IPC, cancellation) are raised synchronously.
Stream faults are data: they travel inside Metadata.error instead of being raised.
"""

from enum import Enum
from typing import Optional


class PlayerError(Exception):
    """Base class for all playback errors."""


class PlayerClosed(PlayerError):
    """Raised when a player is used after close()."""


class StartFailure(PlayerError):
    """The engine process could not be launched."""


class ExecutableNotFound(StartFailure):
    """The engine binary is missing or cannot be resolved on PATH."""

    def __init__(self, executable: str):
        self.executable = executable
        super().__init__(f"{executable} executable not found")


class ExecutionFailed(StartFailure):
    """The engine binary was found but the process failed to start."""


class SocketTimeout(PlayerError):
    """The mpv control socket file never appeared."""


class Cancelled(PlayerError):
    """The socket wait was aborted by an external cancellation signal."""


class IpcError(PlayerError):
    """Transport failure on the control connection (write/read/timeout)."""


class IpcCommandError(IpcError):
    """The engine answered a request with a non-success status."""

    def __init__(self, status: str, command: Optional[list] = None):
        self.status = status
        self.command = command
        super().__init__(f"ipc response error: {status}")


class MissingResponse(IpcError):
    """No correlated response line arrived before end of stream."""


class NoMetadata(PlayerError):
    """The engine has not announced any station metadata yet."""


class FaultKind(Enum):
    NOT_FOUND = "not_found"
    RESOLVE_FAILED = "resolve_failed"
    INVALID_DATA = "invalid_data"


class StreamFault(PlayerError):
    """Engine-reported playback error (bad URL, DNS failure, corrupt stream)."""

    def __init__(self, kind: FaultKind, message: str):
        self.kind = kind
        super().__init__(message)
