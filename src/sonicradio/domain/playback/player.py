"""
The Player capability and backend selection.
"""

import shutil
import threading
from typing import Optional, Protocol, runtime_checkable

from loguru import logger

from sonicradio.core.config import PlayerConfig

from .errors import ExecutableNotFound
from .ffplay_player import FFPlayPlayer
from .models import EngineType, Metadata
from .mpv_player import MpvPlayer
from .process import check_executable

# Flag each engine accepts to print its version and exit
VERSION_FLAGS = {
    EngineType.MPV: "--version",
    EngineType.FFPLAY: "-version",
}


@runtime_checkable
class Player(Protocol):
    """Uniform control surface over the mpv and ffplay backends.

    Every method may be called from the metadata poller and the control path
    concurrently. Control calls raise PlayerError subclasses; metadata() never
    does and reports failures in Metadata.error instead.
    """

    engine: EngineType

    @property
    def volume(self) -> int: ...

    def play(self, url: str) -> None: ...

    def pause(self, enable: bool) -> None: ...

    def set_volume(self, value: int) -> int: ...

    def stop(self) -> None: ...

    def metadata(self) -> Metadata: ...

    def seek(self, offset_seconds: int) -> Optional[Metadata]: ...

    def close(self) -> None: ...


def _executable(config: PlayerConfig, engine: EngineType) -> str:
    if engine is EngineType.MPV:
        return config.mpv_path or "mpv"
    return config.ffplay_path or "ffplay"


def check_engine_available(config: PlayerConfig, engine: EngineType) -> bool:
    """Check if the engine binary is installed and runs."""
    return check_executable(_executable(config, engine), VERSION_FLAGS[engine])


def resolve_engine(config: PlayerConfig) -> EngineType:
    """Pick the engine to use: the configured one, or mpv then ffplay for "auto"."""
    if config.engine != "auto":
        return EngineType(config.engine)

    for engine in (EngineType.MPV, EngineType.FFPLAY):
        if shutil.which(_executable(config, engine)):
            return engine
        logger.warning(f"{engine.value} not found on PATH")
    raise ExecutableNotFound("mpv or ffplay")


def create_player(
    config: PlayerConfig, cancel: Optional[threading.Event] = None
) -> Player:
    """Create the configured backend, ready for play().

    For mpv this launches the idle engine and waits for its control socket,
    so SocketTimeout/Cancelled/StartFailure surface here.
    """
    engine = resolve_engine(config)
    logger.info(f"Creating {engine.value} player (volume={config.volume})")

    if engine is EngineType.MPV:
        return MpvPlayer.start(
            volume=config.volume,
            socket_path=config.mpv_socket_path,
            executable=_executable(config, engine),
            socket_timeout=config.socket_timeout,
            socket_retry_interval=config.socket_retry_interval,
            ipc_timeout=config.ipc_timeout,
            stop_timeout=config.stop_timeout,
            cancel=cancel,
        )

    return FFPlayPlayer(
        volume=config.volume,
        executable=_executable(config, engine),
        stop_timeout=config.stop_timeout,
        poll_timeout=config.ipc_timeout,
    )
