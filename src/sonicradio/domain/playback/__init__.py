"""Playback domain - external engine control.

This domain handles:
- mpv integration via JSON IPC over a Unix socket
- ffplay integration via stderr scraping plus an external playback clock
- Engine process launch/teardown
- The uniform Player capability used by the front-end
"""

from .clock import PlaybackClock
from .errors import (
    Cancelled,
    ExecutableNotFound,
    ExecutionFailed,
    FaultKind,
    IpcCommandError,
    IpcError,
    MissingResponse,
    NoMetadata,
    PlayerClosed,
    PlayerError,
    SocketTimeout,
    StartFailure,
    StreamFault,
)
from .ffplay_player import FFPlayPlayer
from .models import EngineType, Metadata, clamp_volume, format_time
from .mpv_ipc import MpvIpcClient, wait_for_socket
from .mpv_player import MpvPlayer
from .player import Player, check_engine_available, create_player, resolve_engine

__all__ = [
    # Player
    "Player",
    "MpvPlayer",
    "FFPlayPlayer",
    "create_player",
    "resolve_engine",
    "check_engine_available",
    # Building blocks
    "PlaybackClock",
    "MpvIpcClient",
    "wait_for_socket",
    # Models
    "EngineType",
    "Metadata",
    "clamp_volume",
    "format_time",
    # Errors
    "PlayerError",
    "PlayerClosed",
    "StartFailure",
    "ExecutableNotFound",
    "ExecutionFailed",
    "SocketTimeout",
    "Cancelled",
    "IpcError",
    "IpcCommandError",
    "MissingResponse",
    "NoMetadata",
    "StreamFault",
    "FaultKind",
]
